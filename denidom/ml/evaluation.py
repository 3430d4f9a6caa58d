"""Metrics for judging price and classification models."""

from datetime import datetime, timezone

import numpy as np

from denidom.ml.normalization import round_half_up

Z_SCORES = {0.9: 1.645, 0.95: 1.96, 0.99: 2.576}


def regression_metrics(predictions, actual) -> dict:
    if len(predictions) != len(actual) or not predictions:
        return {'mse': 0, 'rmse': 0, 'mae': 0, 'r2': 0, 'mape': 0}

    pred = np.asarray(predictions, dtype=float)
    act = np.asarray(actual, dtype=float)
    errors = pred - act

    mse = float(np.mean(errors ** 2))
    mae = float(np.mean(np.abs(errors)))
    nonzero = act != 0
    mape = float(np.sum(np.abs(errors[nonzero] / act[nonzero])) / len(act) * 100)

    total_ss = float(np.sum((act - act.mean()) ** 2))
    residual_ss = float(np.sum(errors ** 2))
    r2 = 1 - residual_ss / total_ss if total_ss > 0 else 0

    return {
        'mse': round_half_up(mse, 4),
        'rmse': round_half_up(mse ** 0.5, 4),
        'mae': round_half_up(mae, 4),
        'r2': round_half_up(r2, 4),
        'mape': round_half_up(mape, 2),
    }


def classification_metrics(predictions, actual, num_classes: int) -> dict:
    """Accuracy plus macro averaged precision, recall and F1.

    Classes that never occur in either list are left out of the averages.
    """
    if len(predictions) != len(actual) or not predictions:
        return {'accuracy': 0, 'precision': 0, 'recall': 0, 'f1Score': 0, 'confusionMatrix': []}

    matrix = np.zeros((num_classes, num_classes), dtype=int)
    correct = 0
    for pred, act in zip(predictions, actual):
        if 0 <= pred < num_classes and 0 <= act < num_classes:
            matrix[act][pred] += 1
        if pred == act:
            correct += 1

    precisions, recalls = [], []
    for c in range(num_classes):
        tp = matrix[c][c]
        fp = matrix[:, c].sum() - tp
        fn = matrix[c, :].sum() - tp
        if tp + fp + fn == 0:
            continue
        precisions.append(tp / (tp + fp) if tp + fp > 0 else 0)
        recalls.append(tp / (tp + fn) if tp + fn > 0 else 0)

    precision = float(np.mean(precisions)) if precisions else 0
    recall = float(np.mean(recalls)) if recalls else 0
    f1 = 2 * precision * recall / (precision + recall) if precision + recall > 0 else 0

    return {
        'accuracy': round_half_up(correct / len(predictions), 4),
        'precision': round_half_up(precision, 4),
        'recall': round_half_up(recall, 4),
        'f1Score': round_half_up(f1, 4),
        'confusionMatrix': matrix.tolist(),
    }


def confidence_interval(values, confidence: float = 0.95) -> dict:
    if not values:
        return {'mean': 0, 'lower': 0, 'upper': 0}
    arr = np.asarray(values, dtype=float)
    mean = float(arr.mean())
    margin = Z_SCORES.get(confidence, 1.96) * float(arr.std()) / len(arr) ** 0.5
    return {
        'mean': round_half_up(mean, 4),
        'lower': round_half_up(mean - margin, 4),
        'upper': round_half_up(mean + margin, 4),
    }


def evaluation_report(model_name: str, metrics: dict, classification: bool = False) -> str:
    lines = [
        f'=== Evaluation Report: {model_name} ===',
        f'Generated: {datetime.now(timezone.utc).isoformat()}',
        '',
    ]
    if classification:
        lines.append('Classification Metrics:')
        lines.append(f"  Accuracy:  {metrics['accuracy'] * 100:.2f}%")
        lines.append(f"  Precision: {metrics['precision'] * 100:.2f}%")
        lines.append(f"  Recall:    {metrics['recall'] * 100:.2f}%")
        lines.append(f"  F1 Score:  {metrics['f1Score'] * 100:.2f}%")
        if metrics.get('confusionMatrix'):
            lines.append('')
            lines.append('Confusion Matrix:')
            for row in metrics['confusionMatrix']:
                lines.append('  ' + '\t'.join(str(v) for v in row))
    else:
        lines.append('Regression Metrics:')
        lines.append(f"  MSE:  {metrics['mse']}")
        lines.append(f"  RMSE: {metrics['rmse']}")
        lines.append(f"  MAE:  {metrics['mae']}")
        lines.append(f"  R²:   {metrics['r2']}")
        lines.append(f"  MAPE: {metrics['mape']}%")
    lines.append('')
    lines.append('===========================')
    return '\n'.join(lines)

"""Scaling and encoding helpers for feature vectors."""

import math
from dataclasses import dataclass

import numpy as np


@dataclass
class NormParams:
    min: float
    max: float
    mean: float
    std: float


def min_max_normalize(value: float, lo: float, hi: float) -> float:
    if hi == lo:
        return 0.5
    return (value - lo) / (hi - lo)


def min_max_denormalize(normalized: float, lo: float, hi: float) -> float:
    return normalized * (hi - lo) + lo


def z_score_normalize(value: float, mean: float, std: float) -> float:
    if std == 0:
        return 0.0
    return (value - mean) / std


def z_score_denormalize(normalized: float, mean: float, std: float) -> float:
    return normalized * std + mean


def calculate_norm_params(data) -> NormParams:
    """Min, max, mean and population standard deviation of ``data``."""
    if len(data) == 0:
        return NormParams(min=0.0, max=1.0, mean=0.5, std=0.5)
    arr = np.asarray(data, dtype=float)
    return NormParams(
        min=float(arr.min()),
        max=float(arr.max()),
        mean=float(arr.mean()),
        std=float(arr.std()),
    )


def normalize_array(data, params: NormParams | None = None) -> list[float]:
    params = params or calculate_norm_params(data)
    return [min_max_normalize(v, params.min, params.max) for v in data]


def normalize_features(features, params=None):
    """Min-max scale each column of ``features`` independently.

    Returns ``(normalized_rows, params_per_column)``. Supplied ``params`` take
    precedence column by column.
    """
    if len(features) == 0:
        return [], []

    matrix = np.asarray(features, dtype=float)
    norm_params = []
    for j in range(matrix.shape[1]):
        given = params[j] if params and j < len(params) else None
        norm_params.append(given or calculate_norm_params(matrix[:, j]))

    normalized = [
        [min_max_normalize(float(v), norm_params[j].min, norm_params[j].max) for j, v in enumerate(row)]
        for row in matrix
    ]
    return normalized, norm_params


def one_hot_encode(value: str, categories: list[str]) -> list[int]:
    return [1 if cat == value else 0 for cat in categories]


def label_encode(value: str, categories: list[str]) -> int:
    # unknown values share the slot just past the known ones
    try:
        return categories.index(value)
    except ValueError:
        return len(categories)


def one_hot_decode(encoded: list[int], categories: list[str]) -> str:
    try:
        index = encoded.index(1)
    except ValueError:
        return 'unknown'
    return categories[index] if index < len(categories) else 'unknown'


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def softmax(values) -> list[float]:
    arr = np.asarray(values, dtype=float)
    exps = np.exp(arr - arr.max())
    return (exps / exps.sum()).tolist()


def sigmoid(x: float) -> float:
    return 1 / (1 + math.exp(-x))


def relu(x: float) -> float:
    return max(0.0, x)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves upward (``round()`` rounds them to even)."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale

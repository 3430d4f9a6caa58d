import os
from denidom import create_app

app = create_app()

if __name__ == "__main__":
    port = int(os.getenv("PORT", "4000"))
    app.run(host="0.0.0.0", port=port)

"""Generate the OpenAPI schema from the FastAPI app and print it as JSON."""

import json

from ledger.core.database import Database
from ledger.main import create_app


def generate_schema() -> dict:  # type: ignore[type-arg]
    # Building the schema never touches storage, so an unconnected in-memory engine is enough
    app = create_app(database=Database.from_dsn("sqlite://"))
    return app.openapi()


if __name__ == "__main__":
    print(json.dumps(generate_schema()))

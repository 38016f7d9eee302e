#!/usr/bin/env python3
"""Script to load the sample inventory data into the configured store database."""

import logging

from reportbuilder.core.config import Settings
from reportbuilder.core.database import Database, StoreBase
from reportbuilder.store import models  # noqa: F401
from reportbuilder.store.sample_data import seed_sample_data


def create_sample_data() -> None:
    settings = Settings.from_env()
    store_db = Database(settings.store_database_url)
    store_db.create_all(StoreBase)

    with store_db.session() as session:
        seed_sample_data(session)
    store_db.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_sample_data()

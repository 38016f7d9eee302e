"""Load and validate catalog documents."""

import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from reportbuilder.catalog.defaults import DEFAULT_CATALOG
from reportbuilder.catalog.schemas import CatalogConfig
from reportbuilder.core.exceptions import CatalogConfigError

logger = logging.getLogger(__name__)


def parse_catalog(document: Union[str, bytes, dict]) -> CatalogConfig:
    """Validate a catalog document given as JSON text or an already-parsed dict."""
    try:
        if isinstance(document, dict):
            return CatalogConfig.model_validate(document)
        return CatalogConfig.model_validate_json(document)
    except ValidationError as exc:
        raise CatalogConfigError(f"Invalid report catalog: {exc}") from exc


def load_catalog_config(path: Optional[Union[str, Path]] = None) -> CatalogConfig:
    """Load the catalog from a JSON file, or the built-in inventory catalog when no path is given."""
    if path is None:
        return DEFAULT_CATALOG

    catalog_path = Path(path)
    try:
        document = catalog_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogConfigError(f"Cannot read report catalog '{catalog_path}': {exc}") from exc

    config = parse_catalog(document)
    logger.info("Loaded report catalog from %s (%d fields, %d tables)",
                catalog_path, len(config.fields), len(config.graph.tables))
    return config

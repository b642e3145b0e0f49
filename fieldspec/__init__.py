# Package exports
from fieldspec.config import settings, get_settings
from fieldspec.logging import (
    configure_logging,
    get_logger,
    bind_context,
    clear_context,
    generate_correlation_id,
    validation_logger,
    api_logger,
)

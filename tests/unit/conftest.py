"""Fixtures for unit tests."""

from typing import Generator

import jinja2
import pytest
import structlog

from github_triage_manager.triage.labels import AllowedLabelSet
from github_triage_manager.utils.templates import construct_jinja2_template_from_string


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def prompt_template() -> jinja2.Template:
    """A minimal classification prompt template."""
    return construct_jinja2_template_from_string("Title: {{ title }}\nBody: {{ body }}")


@pytest.fixture
def allowed_labels() -> AllowedLabelSet:
    """The default allowed labels."""
    return AllowedLabelSet(labels=frozenset({"urgent", "important"}))

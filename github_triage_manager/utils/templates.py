"""Contains utilities for rendering Jinja2 templates."""

from pathlib import Path

import jinja2
import structlog
from pydantic import BaseModel

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

DEFAULT_LABEL_PROMPT_TEMPLATE_PATH = Path(__file__).parent.parent / "templates" / "label_prompt.j2"


def construct_jinja2_environment() -> jinja2.Environment:
    """Construct a Jinja2 environment that fails on undefined variables."""
    return jinja2.Environment(undefined=jinja2.StrictUndefined, keep_trailing_newline=True)


def construct_jinja2_template_from_string(template_string: str, environment: jinja2.Environment | None = None) -> jinja2.Template:
    """Construct a Jinja2 template from a string."""
    if environment is None:
        environment = construct_jinja2_environment()
    return environment.from_string(template_string)


def construct_jinja2_template_from_file(template_path: Path | str, environment: jinja2.Environment | None = None) -> jinja2.Template:
    """Construct a Jinja2 template from a file."""
    try:
        template_content = Path(template_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.error("Jinja2 template not found", template_path=str(template_path))
        raise
    return construct_jinja2_template_from_string(template_content, environment)


def load_label_prompt_template(template_path: Path | None = None) -> jinja2.Template:
    """Load the classification prompt template, falling back to the bundled one."""
    return construct_jinja2_template_from_file(template_path or DEFAULT_LABEL_PROMPT_TEMPLATE_PATH)


def render_template_with_model(model: BaseModel, template: jinja2.Template) -> str:
    """Render a Jinja2 template against a Pydantic model."""
    try:
        rendered_template = template.render(model.model_dump())
    except jinja2.UndefinedError as exc:
        logger.error("Failed to render template with model", model_type=type(model).__name__, error=str(exc))
        raise
    return rendered_template

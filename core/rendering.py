"""Jinja2 environment for PDF and email templates."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


def create_template_env(template_dir: Path = TEMPLATE_DIR) -> Environment:
    """HTML templates are autoescaped; .txt templates are not."""
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"])
)


def format_money(value) -> str:
    return f"{value or 0:,.2f}"


env.filters["money"] = format_money


def render_template(template_path: str, **context) -> str:
    template = env.get_template(template_path)
    return template.render(**context)

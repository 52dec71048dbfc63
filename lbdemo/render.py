from __future__ import annotations

from jinja2 import Environment, PackageLoader, select_autoescape

from .models import PageViewModel


class PageRenderer:
    """Renders ``templates/index.html`` with every value HTML-escaped."""

    def __init__(self, template_name: str = "index.html") -> None:
        self.env = Environment(
            loader=PackageLoader("lbdemo", "templates"),
            autoescape=select_autoescape(["html"]),
        )
        self.template = self.env.get_template(template_name)

    def render(self, model: PageViewModel) -> bytes:
        return self.template.render(**model.model_dump()).encode("utf-8")

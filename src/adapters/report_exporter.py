"""Exportación del reporte de clasificación.

Por qué está en adapters:
- El formato de texto es un detalle de presentación (plantilla Jinja2).
- El Core solo conoce el agregado `Classification`.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.domain.models import Classification


_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def _get_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
    )


def render_report_text(*, classification: Classification) -> str:
    """Renderiza conteos y nombres por categoría.

    Orden fijo de secciones: en uso, sin uso, sin comprar, sin licencia, otras.
    Cada sección es `<Título>: <n>` seguida de un nombre por línea.
    """

    sections = [
        {"title": category.label(), "names": [record.name for record in records]}
        for category, records in classification.iter_lists()
    ]
    template = _get_env().get_template("results.txt.j2")
    return template.render(sections=sections)


def export_report_text(*, classification: Classification, output_path: Path) -> Path:
    """Escribe el reporte en disco (uso directo desde la CLI)."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_report_text(classification=classification), encoding="utf-8")
    return output_path

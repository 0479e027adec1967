"""Exportación JSON de una página de resultados.

Por qué JSON:
- Interoperabilidad con otras herramientas y pipelines (jq, notebooks).
- Guarda los filtros exactos junto a los datos que produjeron.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.domain.models import FilterState, ResultPage


def export_page_json(
    *,
    results: ResultPage,
    filters: FilterState,
    output_path: Path,
    url: str | None = None,
) -> Path:
    """Exporta `results` a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "filters": filters.model_dump(mode="json"),
        "url": url,
        "info": {
            "count": results.total_count,
            "pages": results.page_count,
            "next": results.next_url,
            "prev": results.prev_url,
        },
        "results": [item.model_dump(mode="json", by_alias=True) for item in results.items],
    }
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path

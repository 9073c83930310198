"""HTML renderers for the cached service list and the Confluence page body."""

from __future__ import annotations

from html import escape

from aggregator.models import MetadataDocument

ABOUT_PAGE_HTML = """<!DOCTYPE html>
<head>
    <title>Service Documentation</title>
</head>
<body>
<h1>Documented services</h1>
<table style='font-size: 10pt; font-family: MONOSPACE;'>
{rows}
</table>
</body>
</html>"""

ABOUT_ROW_HTML = """    <tr>
        <td><a href="{href}">{label}</a></td>
    </tr>"""


def render_about_page(documents: list[MetadataDocument]) -> str:
    """One row per service, linking through the API server proxy path."""
    rows = []
    for document in documents:
        svc = document.service
        href = f"/../../../{svc.namespace}/services/{svc.name}:80/__/about"
        rows.append(ABOUT_ROW_HTML.format(
            href=escape(href),
            label=escape(f"{svc.namespace}.{svc.name}"),
        ))
    return ABOUT_PAGE_HTML.format(rows="\n".join(rows))


# ──────────────────────────────────────────────────────────────────
# Confluence storage format
# ──────────────────────────────────────────────────────────────────

_STORAGE_HEADER = (
    "<tr><th>Service</th><th>Namespace</th><th>Description</th>"
    "<th>Owners</th><th>Links</th><th>Revision</th></tr>"
)


def _storage_row(document: MetadataDocument) -> str:
    svc = document.service
    doc = document.doc
    if doc is None:
        cells = [
            escape(svc.name),
            escape(svc.namespace),
            f"<pre>{escape(document.payload_dict())}</pre>",
            "",
            "",
            "",
        ]
    else:
        owners = "<br/>".join(
            escape(f"{o.name} ({o.slack})" if o.slack else o.name) for o in doc.owners
        )
        links = "<br/>".join(
            f'<a href="{escape(link.url)}">{escape(link.description or link.url)}</a>'
            for link in doc.links
        )
        cells = [
            escape(doc.name or svc.name),
            escape(svc.namespace),
            escape(doc.description),
            owners,
            links,
            escape(doc.build_info.revision),
        ]
    return "<tr>" + "".join(f"<td>{c}</td>" for c in cells) + "</tr>"


def render_storage_body(documents: list[MetadataDocument]) -> str:
    """Render *documents* as a Confluence storage-format (XHTML) table."""
    rows = "".join(_storage_row(d) for d in documents)
    return f"<table><tbody>{_STORAGE_HEADER}{rows}</tbody></table>"

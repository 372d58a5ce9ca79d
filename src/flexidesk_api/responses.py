"""Non-JSON responses."""

from fastapi import Response


def csv_response(content: str, filename: str) -> Response:
    """CSV download with an attachment filename."""
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

"""URL analysis schemas."""
from typing import Optional

from pydantic import BaseModel


class AnalyzeUrlRequest(BaseModel):
    """Body for POST /analyze-url. url thiếu/sai format => 400."""

    url: Optional[str] = None

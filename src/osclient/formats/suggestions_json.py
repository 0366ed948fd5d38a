"""OpenSearch Suggestions extension (``application/x-suggestions+json``)."""

from __future__ import annotations

import json
from typing import Any, List, Union

from ..core.models import Suggestion


class SuggestionsJSONFormat:
    def parse(self, text: Union[str, bytes], **options: Any) -> List[Suggestion]:
        """Parse ``[query, completions, descriptions?, urls?]``; ``options`` are ignored."""
        result = json.loads(text)
        completions = result[1] if len(result) > 1 else []
        descriptions = result[2] if len(result) > 2 else None
        urls = result[3] if len(result) > 3 else None
        return [
            Suggestion(
                completion=completion,
                description=descriptions[index] if descriptions and index < len(descriptions) else None,
                url=urls[index] if urls and index < len(urls) else None,
            )
            for index, completion in enumerate(completions)
        ]

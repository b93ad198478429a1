"""Custom JSON encoder for seobatch objects."""

import json
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel


class SeoBatchJSONEncoder(json.JSONEncoder):
    """JSON encoder for snapshots, job results and remote responses.
    
    Usage:
        ```python
        import json
        from seobatch.utils import SeoBatchJSONEncoder
        
        json.dumps(run.snapshot(), cls=SeoBatchJSONEncoder, indent=2)
        ```
    """
    
    def default(self, obj: Any) -> Any:
        """Convert objects to JSON-serializable format."""
        if hasattr(obj, "to_dict") and callable(obj.to_dict):
            return obj.to_dict()
        
        if is_dataclass(obj) and not isinstance(obj, type):
            return asdict(obj)
        
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json")
        
        if isinstance(obj, Enum):
            return obj.value
        
        if isinstance(obj, datetime):
            return obj.isoformat()
        
        return super().default(obj)

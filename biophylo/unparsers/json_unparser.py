import json
from typing import IO, Any

import numpy as np


class EntityEncoder(json.JSONEncoder):
    def default(self, o: Any):
        # Entities serialize through their own dictionary form
        if hasattr(o, "to_dict"):
            return o.to_dict()

        if isinstance(o, np.ndarray):
            return o.tolist()

        if isinstance(o, np.generic):
            return o.item()

        if isinstance(o, (set, frozenset)):
            return sorted(o, key=str)

        return super().default(o)


def unparse_json(phylo: Any, **options: Any) -> str:
    return json.dumps(phylo, cls=EntityEncoder, **options)


def dump_json(phylo: Any, f: IO[str], **options: Any) -> None:
    json.dump(phylo, f, cls=EntityEncoder, **options)

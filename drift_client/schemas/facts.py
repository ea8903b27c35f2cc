from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from drift_client.schemas.common import APIModel
from drift_client.schemas.context import Fact


class FactsResult(APIModel):
    """Facts produced by an extraction run on one branch."""

    branch_id: Optional[str] = None
    facts: List[Fact] = Field(default_factory=list)

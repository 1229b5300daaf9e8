from pydantic import BaseModel
from typing import Dict, List, Optional


class ImportRow(BaseModel):
    row_number: int
    data: Dict[str, str]
    status: str  # valid | duplicate | warning | error
    message: Optional[str] = None


class ImportValidationResponse(BaseModel):
    import_type: str
    total_rows: int
    valid: int
    duplicates: int
    warnings: int
    errors: int
    rows: List[ImportRow]


class ImportCommitResponse(BaseModel):
    import_type: str
    created: int
    updated: int
    skipped: int
    errors: int
    rows: List[ImportRow]

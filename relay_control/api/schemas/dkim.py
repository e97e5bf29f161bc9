from pydantic import BaseModel


class DKIMRecordResponse(BaseModel):
    domain: str
    selector: str
    dns_name: str
    dns_value: str

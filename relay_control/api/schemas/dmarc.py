from pydantic import BaseModel


class DMARCRecordResponse(BaseModel):
    domain: str
    dns_name: str
    dns_value: str
    policy: str

from typing import Literal, Optional

from storefront.schemas.base import CamelBase

Role = Literal["user", "admin"]


# Credential issued by the identity provider on login/registration
class SessionIn(CamelBase):
    token: str
    role: Optional[Role] = None


# Output schema for the current session (the token itself is never echoed)
class SessionOut(CamelBase):
    is_authenticated: bool
    role: Optional[Role] = None

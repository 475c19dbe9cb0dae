from pydantic import EmailStr

from openwrite.schemas.base import CamelModel
from openwrite.schemas.enums import MemberRole


class AddMemberRequest(CamelModel):
    email: EmailStr
    role: MemberRole = MemberRole.MEMBER

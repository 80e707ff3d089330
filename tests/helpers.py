from typing import Dict

from controlclin.core.security import create_access_token
from controlclin.db.models import User


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token({"sub": user.id, "tenant_id": user.tenant_id})
    return {"Authorization": f"Bearer {token}"}

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from clinic_backend.auth import jwt_handler
from clinic_backend.auth.actors import Actor, ActorRole

security = HTTPBearer(auto_error=False)


def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Actor:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = jwt_handler.decode_access_token(credentials.credentials)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    subject = payload.get("sub")
    if not subject:
        raise HTTPException(status_code=401, detail="Invalid token subject")

    try:
        role = ActorRole(payload.get("role"))
    except ValueError as exc:
        raise HTTPException(status_code=401, detail="Invalid token role") from exc

    if role is ActorRole.PRACTITIONER and not str(subject).isdigit():
        raise HTTPException(status_code=401, detail="Invalid token subject")

    return Actor(role=role, subject=str(subject))


def require_role(role: ActorRole):
    def dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role is not role:
            raise HTTPException(status_code=403, detail=f"Only a {role.value} can use this endpoint.")
        return actor

    return dependency

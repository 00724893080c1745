"""FastAPI routes for the AI proxy backend."""

from __future__ import annotations

import json
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from novachat.core.result import Err
from novachat.core.storage import Storage, UserAlreadyExistsError

from .models import AiProxyResponse, AuthRequest, AuthResponse, ErrorResponse, Principal
from .service import ProxyService

router = APIRouter()
auth_router = APIRouter(prefix="/auth", tags=["auth"])


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_proxy_service(request: Request) -> ProxyService:
    return request.app.state.proxy_service


def _extract_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
        )
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Authorization header",
        )
    return token.strip()


def get_principal(
    storage: Annotated[Storage, Depends(get_storage)],
    authorization: Annotated[Optional[str], Header(alias="Authorization")] = None,
) -> Optional[Principal]:
    """Resolve the caller, or ``None`` when the token is missing or invalid."""

    try:
        token = _extract_token(authorization)
    except HTTPException:
        return None
    user = storage.get_user_by_token(token)
    if not user:
        return None
    return Principal(user_id=user["id"], username=user["username"])


async def _read_json(request: Request) -> Any:
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None


@router.post(
    "/aiProxy",
    response_model=AiProxyResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def ai_proxy(
    request: Request,
    principal: Annotated[Optional[Principal], Depends(get_principal)],
    service: Annotated[ProxyService, Depends(get_proxy_service)],
) -> Any:
    """Forward one message to Gemini on behalf of the authenticated caller."""

    outcome = await service.generate(principal, await _read_json(request))
    if isinstance(outcome, Err):
        error = outcome.error
        return JSONResponse(status_code=error.kind.http_status, content=error.to_payload())

    result = outcome.value
    return AiProxyResponse(response=result.text, model=result.model_id)


@auth_router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: AuthRequest, storage: Annotated[Storage, Depends(get_storage)]) -> AuthResponse:
    try:
        user_id = storage.create_user(payload.username, payload.password)
    except UserAlreadyExistsError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    token = storage.issue_token(user_id)
    return AuthResponse(user_id=user_id, username=payload.username.strip(), token=token)


@auth_router.post("/login", response_model=AuthResponse)
def login(payload: AuthRequest, storage: Annotated[Storage, Depends(get_storage)]) -> AuthResponse:
    user = storage.authenticate_user(payload.username, payload.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    token = storage.issue_token(user["id"])
    return AuthResponse(user_id=user["id"], username=user["username"], token=token)


@auth_router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    storage: Annotated[Storage, Depends(get_storage)],
    authorization: Annotated[Optional[str], Header(alias="Authorization")] = None,
) -> Response:
    token = _extract_token(authorization)
    storage.revoke_token(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


router.include_router(auth_router)

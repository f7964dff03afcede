"""
api/routes/auth.py -- Registration, login and session REST endpoints.

Routes:
  POST /api/register     -- create account; 201, no token
  POST /api/login        -- password login; sets authToken cookie
  GET  /api/verify-auth  -- decoded claims of the cookie's token
  POST /api/logout       -- clears the cookie; no server-side invalidation

Flows raise auth.errors.AuthError subclasses; the handler registered in
api/main.py turns them into {"message": ...} with the matching status.

Handlers are plain def on purpose: FastAPI runs them in its thread pool, so
bcrypt work never blocks the event loop.

Security:
  Cache-Control: no-store on login responses, success and failure alike.
  Login failures share one body whatever the cause.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, MessageResponse, PublicUser, RegisterRequest, VerifyResponse
from auth.dependencies import get_auth_service, get_current_claims
from auth.errors import AuthError
from auth.flows import AuthService
from auth.models import SessionClaims
from auth.tokens import clear_auth_cookie, set_auth_cookie

# Auth policy:
# - POST /api/register:     public
# - POST /api/login:        public
# - GET  /api/verify-auth:  requires a valid authToken cookie (get_current_claims)
# - POST /api/logout:       public -- clearing a cookie needs no prior auth
router = APIRouter()


@router.post("/register", response_model=MessageResponse, status_code=201)
def register(body: RegisterRequest, service: AuthService = Depends(get_auth_service)) -> MessageResponse:
    """Create a new account. The caller must log in separately."""
    service.register(body.username, body.email, body.phone, body.password, body.confirm_password)
    return MessageResponse(message="Registration successful!")


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)) -> JSONResponse:
    """Authenticate with username and password; set the authToken cookie."""
    try:
        result = service.login(body.username, body.password)
    except AuthError as exc:
        resp = JSONResponse(status_code=exc.status_code, content=MessageResponse(message=exc.message).model_dump())
        resp.headers["Cache-Control"] = "no-store"
        return resp

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(user=PublicUser(username=result.username)).model_dump(),
    )
    set_auth_cookie(resp, result.token, max_age=service.tokens.expire_seconds)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/verify-auth", response_model=VerifyResponse)
def verify_auth(claims: SessionClaims = Depends(get_current_claims)) -> VerifyResponse:
    """Return the decoded claims of the presented session token."""
    return VerifyResponse(user=claims.to_dict())


@router.post("/logout", response_model=MessageResponse)
def logout() -> JSONResponse:
    """Clear the authToken cookie."""
    resp = JSONResponse(content=MessageResponse(message="logout success").model_dump())
    clear_auth_cookie(resp)
    return resp

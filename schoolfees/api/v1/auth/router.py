import logging

from fastapi import APIRouter, HTTPException, status

from schoolfees.auth.schemas import LoginRequest, TokenResponse
from schoolfees.auth.security import create_access_token, verify_admin_credentials
from schoolfees.core.schemas import ApiResponse, success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=ApiResponse[TokenResponse])
async def login(payload: LoginRequest) -> ApiResponse[TokenResponse]:
    if not verify_admin_credentials(payload.email, payload.password):
        logger.info("Rejected login for %s", payload.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = create_access_token(subject={"sub": payload.email, "email": payload.email})
    return success("Login successful", TokenResponse(token=token))

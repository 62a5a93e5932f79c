from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.features.auth.models.user import User
from dealership.features.auth.routes.auth import get_current_user, require_admin
from dealership.features.otp.schemas.otp import OtpPurpose, OtpVerifyRequest
from dealership.features.otp.services.otp_service import OtpService
from dealership.features.otp.utils.responses import issuance_response, verification_failure_response
from dealership.features.purchase_requests.schemas.purchase_request import (
    PurchaseRequestCreate,
    PurchaseRequestEnvelope,
    PurchaseRequestOut,
    PurchaseRequestUpdate,
)
from dealership.features.purchase_requests.services.purchase_request_service import (
    PurchaseRequestService,
)
from dealership.platform.db.session import get_db
from dealership.platform.logger import get_logger
from dealership.platform.response import api_response

logger = get_logger(__name__)

router = APIRouter(prefix="/purchase-requests", tags=["Purchase Requests"])


def _out(requests):
    return [PurchaseRequestOut.model_validate(r) for r in requests]


@router.get("", response_model=dict, summary="List all purchase requests")
async def list_purchase_requests(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    requests = await PurchaseRequestService(db).list_all()
    return api_response(data=_out(requests), message="Purchase requests retrieved")


@router.get("/pending", response_model=dict, summary="List pending purchase requests")
async def list_pending_purchase_requests(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    requests = await PurchaseRequestService(db).list_pending()
    return api_response(data=_out(requests), message="Pending purchase requests retrieved")


@router.get("/my-requests", response_model=dict, summary="List my purchase requests")
async def list_my_purchase_requests(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    requests = await PurchaseRequestService(db).list_for_customer(str(current_user.id))
    return api_response(data=_out(requests), message="Purchase requests retrieved")


@router.post(
    "/request-otp",
    response_model=dict,
    summary="Request a purchase OTP",
    description="Hold the purchase request until the code sent to the customer's email is verified",
)
async def request_purchase_otp(
    request: PurchaseRequestCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    envelope = PurchaseRequestEnvelope(request=request, user_id=str(current_user.id))
    result = await OtpService(db).generate(
        email=current_user.email,
        purpose=OtpPurpose.PURCHASE_REQUEST.value,
        payload=envelope.model_dump_json(),
    )
    return issuance_response(result)


@router.post(
    "/verify-otp",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
    summary="Create a purchase request",
    description="Verify the code and create the purchase request stored with it",
)
async def create_purchase_request_with_otp(
    request: OtpVerifyRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await OtpService(db).verify(
        email=current_user.email, code=request.code, purpose=OtpPurpose.PURCHASE_REQUEST.value
    )
    if not result.is_valid:
        return verification_failure_response(result)

    if not result.payload:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid purchase request data."
        )
    try:
        envelope = PurchaseRequestEnvelope.model_validate_json(result.payload)
    except ValidationError:
        logger.warning(f"Undecodable purchase request payload for {current_user.email}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid purchase request data format.",
        )

    if envelope.user_id != str(current_user.id):
        logger.warning(f"Purchase request payload for {envelope.user_id} verified by {current_user.id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Purchase request was issued for another user",
        )

    purchase_request = await PurchaseRequestService(db).create(envelope.request, envelope.user_id)
    return api_response(
        data=PurchaseRequestOut.model_validate(purchase_request),
        message="Purchase request created",
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/{request_id}", response_model=dict, summary="Get a purchase request")
async def get_purchase_request(
    request_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    purchase_request = await PurchaseRequestService(db).get(request_id)
    if purchase_request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase request not found")

    if not current_user.is_admin and purchase_request.customer_id != str(current_user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed")

    return api_response(
        data=PurchaseRequestOut.model_validate(purchase_request),
        message="Purchase request retrieved",
    )


@router.put("/{request_id}", response_model=dict, summary="Update a purchase request status")
async def update_purchase_request(
    request_id: int,
    request: PurchaseRequestUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    purchase_request = await PurchaseRequestService(db).update(request_id, request)
    if purchase_request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase request not found")
    return api_response(
        data=PurchaseRequestOut.model_validate(purchase_request),
        message="Purchase request updated",
    )


@router.delete("/{request_id}", response_model=dict, summary="Delete a purchase request")
async def delete_purchase_request(
    request_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if not await PurchaseRequestService(db).delete(request_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase request not found")
    return api_response(message="Purchase request deleted")

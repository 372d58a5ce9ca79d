"""Client (guest) endpoints.

Provides REST endpoints for:
- The client's bookings with review, refund and action flags
- Cancellation preview and cancellation
- Writing, editing and flagging reviews (multipart photo uploads)
- Account profile, preferences, identity documents and refund requests

Every endpoint forwards the caller's bearer token to the upstream API.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from starlette.status import HTTP_201_CREATED

from flexidesk.models.account import AccountView, Preferences, RefundRequest
from flexidesk.models.booking import CancelRequest, CancellationPreview, ClientBookingsView
from flexidesk.models.review import EditEligibility, FlagRequest
from flexidesk.services.account import AccountService
from flexidesk.services.bookings import CANCEL_REASONS, ClientBookingsService
from flexidesk.services.reviews import ReviewsService
from flexidesk_api.dependencies import (
    get_account_service,
    get_client_bookings_service,
    get_reviews_service,
)
from flexidesk_api.uploads import read_upload, read_uploads

router = APIRouter(tags=["client"])


@router.get(
    "/client/bookings",
    summary="List my bookings",
    description="""
The client's bookings split into upcoming (soonest first) and past (most
recent first).

Each booking carries its latest refund case when cancelled, and flags for
the actions the page offers: review, cancel, pay and show QR code.
""",
    response_model=ClientBookingsView,
)
async def list_bookings(
    service: ClientBookingsService = Depends(get_client_bookings_service),
) -> ClientBookingsView:
    return await service.load()


@router.get(
    "/client/bookings/{booking_id}/cancellation",
    summary="Preview a cancellation",
    description="The listing's cancellation policy and the upstream refund calculation.",
    response_model=CancellationPreview,
)
async def preview_cancellation(
    booking_id: str,
    listing_id: str = Query(..., description="Listing of the booking"),
    service: ClientBookingsService = Depends(get_client_bookings_service),
) -> CancellationPreview:
    return await service.cancellation_preview(booking_id, listing_id)


@router.post(
    "/client/bookings/{booking_id}/cancel",
    summary="Cancel a booking",
    description=f"""
Submit a cancellation.

**Notes:**
- A reason is required: {', '.join('`' + r + '`' for r in CANCEL_REASONS)}
- The `other` reason requires details in `reasonOther`
""",
    responses={400: {"description": "Reason missing"}},
)
async def cancel_booking(
    booking_id: str,
    body: CancelRequest,
    service: ClientBookingsService = Depends(get_client_bookings_service),
) -> Any:
    return await service.cancel(booking_id, body.reason, body.reason_other)


@router.post(
    "/client/bookings/{booking_id}/review",
    summary="Write a review",
    description="""
Submit a review for a completed booking.

**Validation:**
- Rating 1-5 is required
- Comment, when given, is 10-500 characters
- At most 5 photos
""",
    status_code=HTTP_201_CREATED,
    responses={400: {"description": "Review failed validation"}},
)
async def create_review(
    booking_id: str,
    rating: Optional[int] = Form(None, description="Star rating 1-5"),
    comment: Optional[str] = Form(None, description="Review text"),
    photos: Optional[list[UploadFile]] = File(None, description="Review photos"),
    service: ReviewsService = Depends(get_reviews_service),
) -> dict[str, Any]:
    return await service.create(booking_id, rating, comment, await read_uploads(photos))


@router.get(
    "/client/reviews/{review_id}/edit-eligibility",
    summary="Check review edit eligibility",
    response_model=EditEligibility,
)
async def get_edit_eligibility(
    review_id: str,
    service: ReviewsService = Depends(get_reviews_service),
) -> EditEligibility:
    return await service.edit_eligibility(review_id)


@router.put(
    "/client/reviews/{review_id}",
    summary="Edit a review",
    description="Kept photo URLs go in `existingPhotos`; new photos are uploaded.",
    responses={400: {"description": "Review failed validation"}},
)
async def update_review(
    review_id: str,
    rating: Optional[int] = Form(None, description="Star rating 1-5"),
    comment: Optional[str] = Form(None, description="Review text"),
    existing_photos: Optional[list[str]] = Form(
        None, alias="existingPhotos", description="Photo URLs to keep"
    ),
    photos: Optional[list[UploadFile]] = File(None, description="New photos"),
    service: ReviewsService = Depends(get_reviews_service),
) -> Any:
    return await service.update(
        review_id,
        rating,
        comment,
        await read_uploads(photos),
        existing_photos or [],
    )


@router.post(
    "/client/reviews/{review_id}/flag",
    summary="Flag a review",
    responses={400: {"description": "Reason missing"}},
)
async def flag_review(
    review_id: str,
    body: FlagRequest,
    service: ReviewsService = Depends(get_reviews_service),
) -> Any:
    reason = body.reason.value if body.reason else None
    return await service.flag(review_id, reason, body.details)


@router.get(
    "/client/account",
    summary="Get my account",
    description="""
Profile, preferences, reviews, trips grouped by year (newest first) and
refund requests.

Bookings and refunds are best effort; the account itself must load.
""",
    response_model=AccountView,
)
async def get_account(
    service: AccountService = Depends(get_account_service),
) -> AccountView:
    return await service.load()


@router.put(
    "/client/account/profile",
    summary="Update my profile",
)
async def update_profile(
    name: str = Form(""),
    location: str = Form(""),
    bio: str = Form(""),
    avatar: Optional[UploadFile] = File(None, description="New avatar image"),
    service: AccountService = Depends(get_account_service),
) -> Any:
    upload = await read_upload(avatar) if avatar and avatar.filename else None
    return await service.update_profile(name=name, location=location, bio=bio, avatar=upload)


@router.put(
    "/client/account/preferences",
    summary="Update my preferences",
    response_model=Preferences,
)
async def update_preferences(
    body: Preferences,
    service: AccountService = Depends(get_account_service),
) -> Preferences:
    return await service.update_preferences(body)


@router.post(
    "/client/account/identity-docs",
    summary="Upload identity documents",
    description="Front and/or back of a government ID. At least one side is required.",
    responses={400: {"description": "No document attached"}},
)
async def upload_identity_docs(
    front: Optional[UploadFile] = File(None, description="Front of the ID"),
    back: Optional[UploadFile] = File(None, description="Back of the ID"),
    service: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    uploads = []
    for field, upload in (("front", front), ("back", back)):
        if upload and upload.filename:
            uploads.append((field, await read_upload(upload)))
    return await service.upload_identity_docs(uploads)


@router.get(
    "/client/refunds",
    summary="List my refund requests",
    description="Refund requests, falling back to refund cases. Empty when unavailable.",
)
async def list_refunds(
    service: AccountService = Depends(get_account_service),
) -> list[dict[str, Any]]:
    return await service.refunds()


@router.post(
    "/client/refunds",
    summary="Request a refund",
    description="Files a refund request and returns the reloaded refund list.",
    status_code=HTTP_201_CREATED,
)
async def request_refund(
    body: RefundRequest,
    service: AccountService = Depends(get_account_service),
) -> list[dict[str, Any]]:
    return await service.request_refund(body.booking_id, body.reason)

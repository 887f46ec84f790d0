from fastapi import HTTPException, Request, status

from salesflow.errors import SalesflowError

STATUS_BY_CODE = {
    'VALIDATION_ERROR': status.HTTP_400_BAD_REQUEST,
    'PRICING_CONFIG_ERROR': status.HTTP_400_BAD_REQUEST,
    'CLIENT_REQUIRED': status.HTTP_400_BAD_REQUEST,
    'NOT_FOUND': status.HTTP_404_NOT_FOUND,
    'NOT_APPROVED': status.HTTP_409_CONFLICT,
    'INVALID_TRANSITION': status.HTTP_409_CONFLICT,
    'BUDGET_LOCKED': status.HTTP_409_CONFLICT,
    'ORDER_LOCKED': status.HTTP_409_CONFLICT,
    'CONVERSION_CONFLICT': status.HTTP_409_CONFLICT,
    'SEQUENCE_COLLISION': status.HTTP_409_CONFLICT,
}


def to_http_exception(exc: SalesflowError) -> HTTPException:
    return HTTPException(
        status_code=STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST),
        detail={'code': exc.code, 'message': exc.message},
    )


def get_client_ip(request: Request) -> str | None:
    forwarded_for = request.headers.get('x-forwarded-for')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    if request.client:
        return request.client.host
    return None

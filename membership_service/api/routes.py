"""HTTP route definitions for users, accounts and memberships."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status

from ..domain.service import AccountService, UserService
from ..schemas import Account, ErrorResponse, User
from ..security.auth import USERS_READ_ROLE, get_principal, require_authorities

router = APIRouter(
    dependencies=[Depends(get_principal)],
    responses={
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_403_FORBIDDEN: {"model": ErrorResponse},
    },
)

_NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}


def get_user_service(request: Request) -> UserService:
    """Resolve the `UserService` stored on the FastAPI application state."""
    service: UserService = request.app.state.user_service
    return service


def get_account_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


@router.get(
    "/users",
    response_model=list[User],
    tags=["users"],
    dependencies=[Depends(require_authorities(USERS_READ_ROLE))],
)
def get_users(service: UserService = Depends(get_user_service)) -> list[User]:
    return service.get_users()


@router.post("/users", response_model=User, status_code=status.HTTP_201_CREATED, tags=["users"])
def create_user(payload: User, service: UserService = Depends(get_user_service)) -> User:
    return service.create_user(payload)


@router.get(
    "/users/{user_id}",
    response_model=User,
    tags=["users"],
    responses=_NOT_FOUND,
    dependencies=[Depends(require_authorities(USERS_READ_ROLE))],
)
def get_user(user_id: int, service: UserService = Depends(get_user_service)) -> User:
    return service.get_user(user_id)


@router.post("/users/{user_id}/accounts/{account_id}", tags=["users"], responses=_NOT_FOUND)
def link_user_to_account(
    user_id: int,
    account_id: int,
    service: UserService = Depends(get_user_service),
) -> Response:
    """Make the user a member of the account."""
    service.link_user_to_account_with_membership(user_id, account_id)
    return Response(status_code=status.HTTP_200_OK)


@router.delete("/users/{user_id}/accounts/{account_id}", tags=["users"], responses=_NOT_FOUND)
def unlink_user_from_account(
    user_id: int,
    account_id: int,
    service: UserService = Depends(get_user_service),
) -> Response:
    """Remove the user's membership of the account."""
    service.unlink_user_from_account_with_membership(user_id, account_id)
    return Response(status_code=status.HTTP_200_OK)


@router.get("/accounts", response_model=list[Account], tags=["accounts"])
def get_accounts(service: AccountService = Depends(get_account_service)) -> list[Account]:
    return service.get_accounts()


@router.post("/accounts", response_model=Account, status_code=status.HTTP_201_CREATED, tags=["accounts"])
def create_account(payload: Account, service: AccountService = Depends(get_account_service)) -> Account:
    return service.create_account(payload)


@router.get("/accounts/{account_id}", response_model=Account, tags=["accounts"], responses=_NOT_FOUND)
def get_account(account_id: int, service: AccountService = Depends(get_account_service)) -> Account:
    return service.get_account(account_id)

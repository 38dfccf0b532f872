from fastapi import APIRouter, Request

from wwallet.api.responses import dump, ok
from wwallet.schemas.auth import (
    AccountOut,
    ForgotPasswordSchema,
    ForgotSpinSchema,
    LoginSchema,
    ProfileUpdateSchema,
    RegisterSchema,
    SpinSchema,
    VerifyPinSchema,
    WwidSchema,
)
from wwallet.services import profile, registration
from wwallet.services.auth import (
    SESSION_PENDING_KEY,
    SESSION_USER_KEY,
    authenticate,
    current_user_dependency,
    db_dependency,
    reset_password,
    reset_spin,
    verify_pin,
)

router = APIRouter()


# Registration: register -> setup-wwid -> setup-spin

@router.post("/api/auth/register")
def register(form: RegisterSchema, db: db_dependency):
    pending = registration.start_registration(db, form.username, form.phone, form.password)
    return ok(
        "Registration data saved",
        registration_token=pending.token,
        expires_at=pending.expires_at.isoformat(),
    )


@router.post("/api/auth/setup-wwid")
def setup_wwid(form: WwidSchema, db: db_dependency):
    wwid = registration.set_registration_wwid(db, form.registration_token, form.wwid)
    return ok(wwid=wwid)


@router.post("/api/auth/setup-spin")
def setup_spin(form: SpinSchema, db: db_dependency):
    account = registration.complete_registration(db, form.registration_token, form.spin)
    return ok(
        "Account created successfully",
        user={"id": str(account.id), "username": account.username, "wwid": account.wwid},
    )


# Login: password, then S-PIN

@router.post("/api/auth/login")
def login(request: Request, form: LoginSchema, db: db_dependency):
    account = authenticate(db, form.username_or_phone, form.password)

    request.session.pop(SESSION_USER_KEY, None)
    request.session[SESSION_PENDING_KEY] = str(account.id)

    return ok(requires_pin_verification=True, username=account.username)


@router.post("/api/auth/verify-pin")
def verify_pin_route(request: Request, form: VerifyPinSchema, db: db_dependency):
    account = verify_pin(db, request.session.get(SESSION_PENDING_KEY), form.spin)

    request.session.pop(SESSION_PENDING_KEY, None)
    request.session[SESSION_USER_KEY] = str(account.id)

    return ok(user=dump(AccountOut, account))


@router.get("/api/auth/me")
def me(user: current_user_dependency):
    return dump(AccountOut, user)


@router.post("/api/auth/logout")
def logout(request: Request):
    request.session.clear()
    return ok()


# Recovery: one secret resets the other, neither logs in

@router.post("/api/auth/forgot-password")
def forgot_password(form: ForgotPasswordSchema, db: db_dependency):
    reset_password(db, form.username_or_phone, form.spin, form.new_password)
    return ok("Password reset successfully. Please login.")


@router.post("/api/auth/forgot-spin")
def forgot_spin(form: ForgotSpinSchema, db: db_dependency):
    reset_spin(db, form.username_or_phone, form.password, form.new_spin)
    return ok("S-PIN reset successfully. Please login.")


@router.post("/api/profile/update")
def update_profile(form: ProfileUpdateSchema, db: db_dependency, user: current_user_dependency):
    message = profile.update_profile(db, user.id, form.field, form.value, form.verify_with)
    return ok(message)

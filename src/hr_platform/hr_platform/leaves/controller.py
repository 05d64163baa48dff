from __future__ import annotations

from decimal import Decimal, InvalidOperation
from functools import wraps

from flask import Flask, g, jsonify, request, session

from ..common.datetime_utils import parse_iso_date
from ..core.enums import AccrualType, ApprovalAction
from ..core.exceptions import AuthorizationError, DomainError, StateError, ValidationError
from ..container import Container


def _error_status(exc: DomainError) -> int:
    if isinstance(exc, AuthorizationError):
        return 403
    if isinstance(exc, StateError):
        return 409
    return 400


def register(app: Flask, container: Container) -> None:
    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            user_id = session.get("user_id")
            actor = container.users_repo.get_by_id(int(user_id)) if user_id else None
            if actor is None or not actor.is_effectively_active:
                return jsonify({"success": False, "message": "Please sign in to continue"}), 401
            g.actor = actor
            return view(*args, **kwargs)

        return wrapper

    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        return jsonify({"success": False, "message": str(exc)}), _error_status(exc)

    def _payload() -> dict:
        return request.get_json(silent=True) or request.form.to_dict(flat=False) or {}

    def _first(data: dict, key: str):
        value = data.get(key)
        if isinstance(value, list):
            return value[0] if value else None
        return value

    def _text(data: dict, key: str):
        value = _first(data, key)
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"Field '{key}' must be a string")
        return value

    def _parse_dates(data: dict) -> list:
        raw = data.get("dates") or []
        if isinstance(raw, str):
            raw = [raw]
        if not isinstance(raw, list) or not all(isinstance(v, str) for v in raw):
            raise ValidationError("Dates must be a list of YYYY-MM-DD strings")
        try:
            return [parse_iso_date(v.strip()) for v in raw if v.strip()]
        except ValueError:
            raise ValidationError("Dates must use the YYYY-MM-DD format")

    def _optional_int(value):
        if value in (None, ""):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError("Expected a numeric id")

    @app.route("/leaves/advance", methods=["POST"], endpoint="leave_apply_advance")
    @login_required
    def apply_advance():
        data = _payload()
        dates = _parse_dates(data)
        created = container.leave_service.create_advance(
            g.actor,
            reason=_text(data, "reason") or "",
            dates=dates,
            cover_person_id=_optional_int(_first(data, "cover_person_id")),
            leave_type_code=_text(data, "leave_type"),
        )
        warnings = [d.isoformat() for d in container.leave_service.warning_dates(dates)]
        return jsonify({"success": True, "leave": created.to_dict(), "short_notice_dates": warnings}), 201

    @app.route("/leaves/post", methods=["POST"], endpoint="leave_apply_post")
    @login_required
    def apply_post():
        data = _payload()
        created = container.leave_service.create_post(
            g.actor,
            reason=_text(data, "reason") or "",
            dates=_parse_dates(data),
            leave_type_code=_text(data, "leave_type"),
        )
        return jsonify({"success": True, "leave": created.to_dict()}), 201

    @app.route("/leaves/<int:request_id>/approval", methods=["POST"], endpoint="leave_approval")
    @login_required
    def approval(request_id: int):
        data = _payload()
        action = (_text(data, "action") or "").strip().lower()
        try:
            action = ApprovalAction(action)
        except ValueError:
            raise ValidationError("Action must be 'approve' or 'reject'")
        updated = container.approval_service.process(
            request_id,
            g.actor,
            action,
            comment=_text(data, "comment"),
        )
        return jsonify({"success": True, "leave": updated.to_dict()})

    @app.route("/leaves/<int:request_id>/cancel", methods=["POST"], endpoint="leave_cancel")
    @login_required
    def cancel(request_id: int):
        cancelled = container.leave_service.cancel(request_id, g.actor)
        return jsonify({"success": True, "leave": cancelled.to_dict()})

    @app.route("/leaves/approvals", methods=["GET"], endpoint="leave_pending_approvals")
    @login_required
    def pending_approvals():
        rows = container.approval_service.pending_approvals_for(g.actor)
        return jsonify({"success": True, "leaves": [r.to_dict() for r in rows]})

    @app.route("/leaves/mine", methods=["GET"], endpoint="leave_mine")
    @login_required
    def mine():
        rows = container.leave_service.list_for_employee(g.actor.user_id)
        balances = container.balance_service.balances_for(g.actor.user_id)
        cover_options = container.directory.cover_person_options(g.actor)
        return jsonify(
            {
                "success": True,
                "leaves": [r.to_dict() for r in rows],
                "balances": [
                    {
                        "leave_type": b.leave_type_code,
                        "name": b.leave_type_name,
                        "balance": float(b.balance),
                        "used": float(b.used),
                        "available": float(b.available),
                        "accrual_type": b.accrual_type.value,
                        "attendance_days_threshold": b.attendance_days_threshold,
                    }
                    for b in balances
                ],
                "cover_person_options": [{"id": u.user_id, "label": u.label} for u in cover_options],
            }
        )

    @app.route(
        "/leaves/balances/<int:user_id>/<int:leave_type_id>",
        methods=["POST"],
        endpoint="leave_balance_settings",
    )
    @login_required
    def balance_settings(user_id: int, leave_type_id: int):
        data = _payload()
        accrual_type = (_text(data, "accrual_type") or "manual").strip().lower()
        try:
            accrual_type = AccrualType(accrual_type)
        except ValueError:
            raise ValidationError("Accrual type must be 'manual' or 'attendance'")
        balance = _first(data, "balance")
        try:
            balance = Decimal(str(balance)) if balance not in (None, "") else None
        except InvalidOperation:
            raise ValidationError("Balance must be a number")
        if balance is not None and not balance.is_finite():
            raise ValidationError("Balance must be a number")
        updated = container.balance_service.update_settings(
            g.actor,
            user_id=user_id,
            leave_type_id=leave_type_id,
            accrual_type=accrual_type,
            balance=balance,
            attendance_days_threshold=_optional_int(_first(data, "attendance_days_threshold")),
        )
        return jsonify(
            {
                "success": True,
                "balance": float(updated.balance),
                "used": float(updated.used),
                "available": float(updated.available),
                "accrual_type": updated.accrual_type.value,
                "attendance_days_threshold": updated.attendance_days_threshold,
            }
        )

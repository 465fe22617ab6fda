"""Domain errors raised by the pricing and invoicing code.

Each kind maps to one HTTP status in ``venue_office.main``; route handlers
never translate them by hand.
"""


class DomainError(Exception):
    status_code = 400
    error = "domain_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFound(DomainError):
    status_code = 404
    error = "not_found"


class ValidationError(DomainError):
    status_code = 400
    error = "validation_error"


class SchedulingConflict(ValidationError):
    error = "scheduling_conflict"


class InvariantViolation(DomainError):
    status_code = 500
    error = "invariant_violation"


# Business messages shown to staff as-is
BOOKING_CREATE_BLOCKED = "予約登録ができませんでした。設定条件などご確認ください。"
BOOKING_UPDATE_BLOCKED = "予約更新ができませんでした。設定条件などご確認ください。"
HOLIDAY_BLOCKED = "指定した日が休業日である。"
ROOM_CHARGE_MISSING = "指定した会議室が、各種料金をまだ設定されません。"
INVOICE_ITEMS_REJECTED = "明細を保存しませんでした"
ROOM_CHARGE_REJECTED = "料金の変更を予約しませんでした"
CANCEL_INFO_INCOMPLETE = "正しく入力されていない項目があります"
EQUIPMENT_UNAVAILABLE = "指定の日時で使用できない備品が登録されているため、予約の更新ができません。"

"""
utils/errors.py
-----------------
Error taxonomy shared by the store adapter, the import merger and the
roster views. Every error carries a message in the operator's language;
blueprints turn them into a JSON failure response.
"""


class RosterError(Exception):
    status_code = 400
    default_message = "❌ حدث خطأ"

    def __init__(self, message=None, detail=None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(detail or self.message)


class ValidationError(RosterError):
    status_code = 400
    default_message = "⚠️ بيانات غير صالحة"


class ParseError(RosterError):
    status_code = 400
    default_message = "❌ الملف غير صالح، تأكد أنه ملف إكسل صالح وعمود 'الاسم' موجود"


class NotFound(RosterError):
    status_code = 404
    default_message = "❌ الطفل غير موجود"


class StoreUnavailable(RosterError):
    status_code = 503
    default_message = "❌ فشل الاتصال بقاعدة البيانات"

    def __init__(self, message=None, detail=None, partial=None):
        super().__init__(message, detail)
        # Import result accumulated before the failure, if any
        self.partial = partial

from marshmallow import Schema, fields


class NotificationPreferencesSchema(Schema):
    email_on_approval = fields.Bool(data_key="emailOnApproval")
    email_on_rejection = fields.Bool(data_key="emailOnRejection")
    email_on_claim = fields.Bool(data_key="emailOnClaim")
    email_on_match = fields.Bool(data_key="emailOnMatch")


class UserSchema(Schema):
    id = fields.Int(dump_only=True)
    email = fields.Email()
    student_id = fields.Str(data_key="studentId", allow_none=True)
    first_name = fields.Str(data_key="firstName", allow_none=True)
    last_name = fields.Str(data_key="lastName", allow_none=True)
    role = fields.Str(dump_only=True)
    is_active = fields.Bool(data_key="isActive", dump_only=True)
    notification_preferences = fields.Method("get_preferences", data_key="notificationPreferences")
    created_at = fields.DateTime(data_key="createdAt", dump_only=True)

    def get_preferences(self, obj):
        return NotificationPreferencesSchema().dump(obj)

"""
Forms for movement and asset payloads

The API receives JSON; the forms only validate and coerce it. Which keys were
actually sent matters for partial edits, so ``load_payload`` returns only the
keys present in the request.
"""
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import StringField, TextAreaField, IntegerField, DateField
from wtforms.validators import DataRequired, Optional, AnyOf, Length, NumberRange

from asset_ledger.constants import DIRECTIONS, CONDITIONS
from asset_ledger.exceptions import InvalidPayload
from asset_ledger.utils.datetime_helper import parse_business_date


class BusinessDateField(DateField):
    """DateField that also accepts an ISO datetime and keeps only the date"""
    def process_formdata(self, valuelist):
        if not valuelist:
            return
        try:
            self.data = parse_business_date(valuelist[0])
        except ValueError:
            self.data = None
            raise ValueError(self.gettext('Not a valid date value.'))


class LedgerForm(FlaskForm):
    class Meta:
        csrf = False


class MovementCreateForm(LedgerForm):
    """Form for recording a new movement"""
    asset_id = IntegerField('Asset', validators=[DataRequired(), NumberRange(min=1)])
    direction = StringField('Direction', validators=[DataRequired(), AnyOf(DIRECTIONS)])

    # Source - declared by the caller, checked against the chain
    source_unit_id = IntegerField('Source Unit', validators=[Optional(), NumberRange(min=1)])
    source_site_id = IntegerField('Source Site', validators=[Optional(), NumberRange(min=1)])

    # Destination - empty means the warehouse
    target_unit_id = IntegerField('Target Unit', validators=[Optional(), NumberRange(min=1)])
    target_site_id = IntegerField('Target Site', validators=[Optional(), NumberRange(min=1)])

    condition = StringField('Condition', validators=[Optional(), AnyOf(CONDITIONS)])
    business_date = BusinessDateField('Movement Date', format='%Y-%m-%d', validators=[Optional()])
    notes = TextAreaField('Notes', validators=[Optional()])
    processed_by = StringField('Processed By', validators=[Optional(), Length(max=100)])


class MovementEditForm(LedgerForm):
    """Form for a partial edit, every field optional"""
    direction = StringField('Direction', validators=[Optional(), AnyOf(DIRECTIONS)])
    source_unit_id = IntegerField('Source Unit', validators=[Optional(), NumberRange(min=1)])
    source_site_id = IntegerField('Source Site', validators=[Optional(), NumberRange(min=1)])
    target_unit_id = IntegerField('Target Unit', validators=[Optional(), NumberRange(min=1)])
    target_site_id = IntegerField('Target Site', validators=[Optional(), NumberRange(min=1)])
    condition = StringField('Condition', validators=[Optional(), AnyOf(CONDITIONS)])
    business_date = BusinessDateField('Movement Date', format='%Y-%m-%d', validators=[Optional()])
    notes = TextAreaField('Notes', validators=[Optional()])
    processed_by = StringField('Processed By', validators=[Optional(), Length(max=100)])

    # Never editable
    immutable_fields = ('code', 'asset_id', 'sequence_timestamp')


class AssetForm(LedgerForm):
    """Form for registering an asset"""
    serial_number = StringField('Serial Number', validators=[DataRequired(), Length(max=100)])
    name = StringField('Name', validators=[Optional(), Length(max=200)])
    registration_date = BusinessDateField('Registration Date', format='%Y-%m-%d', validators=[Optional()])
    condition = StringField('Condition', validators=[Optional(), AnyOf(CONDITIONS)])
    description = TextAreaField('Description', validators=[Optional()])


def load_payload(form_class, payload):
    """
    Validate a JSON object with ``form_class``.

    Returns ``{field: value}`` for the form fields present in ``payload``;
    a key sent as ``null`` or empty comes back as ``None``. Raises
    ``InvalidPayload`` with the field errors.
    """
    if not isinstance(payload, dict):
        raise InvalidPayload('Request body must be a JSON object')

    immutable = [key for key in getattr(form_class, 'immutable_fields', ()) if key in payload]
    if immutable:
        raise InvalidPayload('Fields cannot be edited', fields=immutable)

    nested = [key for key, value in payload.items() if isinstance(value, (dict, list))]
    if nested:
        raise InvalidPayload('Fields must be scalar values', fields=nested)

    formdata = MultiDict([
        (key, value if isinstance(value, str) else str(value))
        for key, value in payload.items()
        if value is not None
    ])
    form = form_class(formdata=formdata)
    if not form.validate():
        raise InvalidPayload(errors=form.errors)

    cleaned = {}
    for field in form:
        if field.name not in payload:
            continue
        value = field.data
        if isinstance(value, str):
            value = value.strip() or None
        cleaned[field.name] = value
    return cleaned

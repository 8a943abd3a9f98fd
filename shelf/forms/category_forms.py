from flask_wtf import FlaskForm
from wtforms import StringField
from wtforms.validators import DataRequired, Length, StopValidation

from shelf.services.category_service import NAME_MAX_LENGTH


def _text(form, field):
    # JSON bodies can carry numbers or objects where a string is expected.
    if field.data is not None and not isinstance(field.data, str):
        raise StopValidation("Category name must be text.")


class CategoryForm(FlaskForm):
    # parent_id and media_type are read from the raw JSON body: on update an
    # absent parent_id and an explicit null mean different things.
    name = StringField(
        "Name",
        validators=[
            _text,
            DataRequired(message="Category name is required."),
            Length(max=NAME_MAX_LENGTH),
        ],
    )

"""
https://docs.pydantic.dev/latest/concepts/types/#customizing-validation-with-__get_pydantic_core_schema__
UUID7 Pydantic Type Integration

uuid_utils.UUID has no pydantic support, so booking ids are declared as
UtilsUUID7 in path parameters and response models:

```python
class BookingListItem(BaseModel):
    booking_id: UtilsUUID7  # JSON string in, uuid_utils.UUID in Python, string out
```
"""

from typing import Any

from pydantic import GetCoreSchemaHandler, GetJsonSchemaHandler
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import core_schema
from uuid_utils import UUID


class UtilsUUID7(UUID):
    """Pydantic-compatible uuid_utils.UUID"""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        """
        JSON mode only accepts strings (JSON has no UUID type); Python mode
        also accepts UUID objects as-is. Serialization is always str.

        with_info_plain_validator_function would not do here: it cannot be
        converted to a JSON schema, which FastAPI needs for OpenAPI.
        """

        def _to_uuid(value: Any) -> UUID:
            if isinstance(value, UUID):
                return value
            try:
                return UUID(str(value))
            except Exception as e:
                raise ValueError(f'Invalid UUID: {value}') from e

        from_str = core_schema.chain_schema(
            [
                core_schema.str_schema(),
                core_schema.no_info_plain_validator_function(_to_uuid),
            ]
        )
        return core_schema.json_or_python_schema(
            json_schema=from_str,
            python_schema=core_schema.union_schema(
                [core_schema.is_instance_schema(UUID), from_str]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(
                str,
                when_used='always',
                return_schema=core_schema.str_schema(),
            ),
        )

    @classmethod
    def __get_pydantic_json_schema__(
        cls, schema: core_schema.CoreSchema, handler: GetJsonSchemaHandler
    ) -> JsonSchemaValue:
        # handler(schema) would expand the validator chain into the OpenAPI document
        return {'type': 'string', 'format': 'uuid'}

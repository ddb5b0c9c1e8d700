"""Error taxonomy for catalog loading and color matching."""


class ColorCatalogError(Exception):
    """Base class for all color_catalog errors."""


class InvalidColorError(ColorCatalogError, ValueError):
    """A string that is not a 3- or 6-digit hex color reached color conversion."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid hex color: {value!r}")


class CatalogIntegrityError(ColorCatalogError, ValueError):
    """Catalog data violates the brand/series/color relation."""


class DanglingReferenceError(CatalogIntegrityError):
    """A series or color points at a parent id that does not exist."""

    def __init__(self, kind: str, record_id: str, field: str, missing_id: str):
        self.kind = kind
        self.record_id = record_id
        self.field = field
        self.missing_id = missing_id
        super().__init__(
            f"{kind} '{record_id}' references unknown {field} '{missing_id}'"
        )


class DuplicateIdError(CatalogIntegrityError):
    """Two records of the same kind share an id."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"Duplicate {kind} id '{record_id}'")

from pydantic import BaseModel, Field, model_validator
from enum import Enum
from typing import List, Optional, Dict

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class TypeKind(str, Enum):
    INTERFACE = "Interface"
    TYPE = "Type"
    ENUM = "Enum"


class SignatureKind(str, Enum):
    FUNCTION = "Function"
    METHOD = "Method"
    CONSTRUCTOR = "Constructor"
    ARROW_FUNCTION = "ArrowFunction"


# ---------------------------------------------------------------------------
# Symbol records
# ---------------------------------------------------------------------------


class Parameter(BaseModel):
    name: str
    param_type: Optional[str] = None
    is_optional: bool = False
    is_rest: bool = False
    default_value: Optional[str] = None

    @model_validator(mode="after")
    def _check_flags(self) -> "Parameter":
        # Rest parameters cannot carry defaults in JavaScript.
        if self.is_rest and self.default_value:
            raise ValueError(f"rest parameter '{self.name}' cannot have a default")
        if self.default_value is not None:
            self.is_optional = True
        return self


class FunctionInfo(BaseModel):
    name: str
    parameters: List[Parameter] = Field(default_factory=list)
    return_type: Optional[str] = None
    is_async: bool = False
    is_generator: bool = False
    is_arrow: bool = False
    doc_comment: Optional[str] = None


class PropertyInfo(BaseModel):
    name: str
    property_type: Optional[str] = None
    is_readonly: bool = False
    is_static: bool = False
    doc_comment: Optional[str] = None


class ClassInfo(BaseModel):
    name: str
    constructor: Optional[FunctionInfo] = None
    methods: List[FunctionInfo] = Field(default_factory=list)
    properties: List[PropertyInfo] = Field(default_factory=list)
    extends: Optional[str] = None
    implements: List[str] = Field(default_factory=list)
    doc_comment: Optional[str] = None


class TypeInfo(BaseModel):
    name: str
    kind: TypeKind
    definition: str  # raw declaration text
    doc_comment: Optional[str] = None


class ConstantInfo(BaseModel):
    name: str
    value_type: Optional[str] = None
    doc_comment: Optional[str] = None


class ImportInfo(BaseModel):
    """
    One imported binding. ``import_name`` is the name inside the source module
    ("default" for default imports, "*" for namespace imports and star
    re-exports); ``as_name`` is the local alias when it differs.
    """

    from_module: Optional[str] = None
    import_name: str
    as_name: Optional[str] = None
    is_relative: bool = False

    @property
    def local_name(self) -> str:
        return self.as_name or self.import_name


class SignatureInfo(BaseModel):
    name: str
    kind: SignatureKind
    parameters: List[Parameter] = Field(default_factory=list)
    return_type: Optional[str] = None
    doc_comment: Optional[str] = None


# ---------------------------------------------------------------------------
# Module container
# ---------------------------------------------------------------------------


class ModuleInfo(BaseModel):
    name: str
    version: Optional[str] = None
    main: Optional[str] = None

    exports: List[str] = Field(default_factory=list)
    imports: List[str] = Field(default_factory=list)  # raw statement texts
    import_bindings: List[ImportInfo] = Field(default_factory=list)

    functions: List[FunctionInfo] = Field(default_factory=list)
    classes: List[ClassInfo] = Field(default_factory=list)
    types: List[TypeInfo] = Field(default_factory=list)
    constants: List[ConstantInfo] = Field(default_factory=list)

    submodules: Dict[str, "ModuleInfo"] = Field(default_factory=dict)

    def add_export(self, name: str) -> None:
        if name and name not in self.exports:
            self.exports.append(name)

    def add_import(self, raw: str) -> None:
        self.imports.append(raw)

    def add_import_binding(self, binding: ImportInfo) -> None:
        self.import_bindings.append(binding)

    def add_function(self, function: FunctionInfo) -> None:
        self.functions.append(function)

    def add_class(self, class_info: ClassInfo) -> None:
        self.classes.append(class_info)

    def add_type(self, type_info: TypeInfo) -> None:
        self.types.append(type_info)

    def add_constant(self, constant: ConstantInfo) -> None:
        self.constants.append(constant)

    def add_submodule(
        self, name: str, module: "ModuleInfo", alt_key: Optional[str] = None
    ) -> str:
        """
        Attach *module* under *name*. When *name* is already taken the module is
        stored under *alt_key* (typically its package-relative path) so that two
        files sharing a stem do not overwrite each other. Returns the key used.
        """
        key = name
        if key in self.submodules and alt_key:
            key = alt_key
        self.submodules[key] = module
        return key

    def is_empty(self) -> bool:
        return not (
            self.exports
            or self.functions
            or self.classes
            or self.types
            or self.constants
        )


ModuleInfo.model_rebuild()

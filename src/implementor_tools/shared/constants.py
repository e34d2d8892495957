"""
Shared constants for the implementor tools.
"""

# External documentation roots for crates not documented in this build
DEFAULT_EXTERN_URLS = {
    "core": "https://doc.rust-lang.org/nightly/",
    "alloc": "https://doc.rust-lang.org/nightly/",
    "std": "https://doc.rust-lang.org/nightly/",
}

# Item kinds of external types that are not structs
EXTERN_ITEM_KINDS = {
    "core::option::Option": "enum",
    "core::result::Result": "enum",
    "core::cmp::Ordering": "enum",
    "alloc::borrow::Cow": "enum",
    "std::borrow::Cow": "enum",
}

# Primitive types; rendered without links and always resolvable
PRIMITIVE_TYPES = frozenset([
    "bool", "char", "str",
    "i8", "i16", "i32", "i64", "i128", "isize",
    "u8", "u16", "u32", "u64", "u128", "usize",
    "f32", "f64",
])

# Shard layout
SHARD_DIR_NAME = "implementors"
REGISTER_FUNCTION = "register_implementors"
PENDING_QUEUE = "pending_implementors"

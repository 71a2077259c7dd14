"""
Catalog module: tour packages (products) and their types.

Products reference their type by the type's upper-case slug rather than by
foreign key, so a type can only be deleted once no product uses the slug.
"""

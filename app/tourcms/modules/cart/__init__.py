"""
Shopping cart kept in the signed session cookie, and the WhatsApp checkout link
built from it. No tables: lines hold product ids and are priced from the
catalog on every read.
"""

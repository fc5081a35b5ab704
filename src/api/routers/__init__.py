# This file marks the routers package for API route modules.
# Health routes live beside the entity router factory that serves every admin table.

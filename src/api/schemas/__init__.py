# This file marks the schemas package for API response models.
# It holds the paginated list, bulk mutation, error, and health contracts.

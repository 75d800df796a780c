"""InnoShop user and product services."""

"""SoleStock - sneaker satışı için mini ERP istemci kütüphanesi."""

__version__ = "0.1.0"

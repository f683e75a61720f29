"""StudentBox - student accommodation CRM backend with bulk student import."""

__version__ = "0.1.0"

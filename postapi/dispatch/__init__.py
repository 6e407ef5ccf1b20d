from .encoding import ResponseEncoder
from .routing import HandlerContext, Outcome, RouteTable

__all__ = ["HandlerContext", "Outcome", "ResponseEncoder", "RouteTable"]

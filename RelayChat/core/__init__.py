from .message.protocol import Event, EventName, Message, MessageKind

__all__ = ['Event', 'EventName', 'Message', 'MessageKind']

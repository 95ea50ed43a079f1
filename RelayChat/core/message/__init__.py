from .protocol import (
    Event,
    EventName,
    FileRef,
    InboundEvent,
    Message,
    MessageKind,
    parse_frame,
    utc_timestamp,
)

__all__ = ['Event', 'EventName', 'FileRef', 'InboundEvent', 'Message', 'MessageKind',
           'parse_frame', 'utc_timestamp']

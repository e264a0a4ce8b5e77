"""WhatsApp Cloud API channel."""

from caretaker.channels.whatsapp.channel import WhatsAppChannel

__all__ = ["WhatsAppChannel"]

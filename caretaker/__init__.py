"""Caretaker - WhatsApp task and incident assistant for school operations staff."""

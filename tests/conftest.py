import pytest


@pytest.fixture
def homeowner_flow():
    """Start -> Decision -> [Yes] Action -> End(success); Decision -> [No] End(failure)."""
    return {
        "title": "Homeowner Qualification",
        "nodes": [
            {"id": "start", "type": "start", "label": "Inbound Call"},
            {"id": "ask-homeowner", "type": "decision", "label": "Homeowner?", "question": "Are you the homeowner?"},
            {"id": "book", "type": "action", "label": "Book", "description": "Schedule the visit"},
            {"id": "end-booked", "type": "end", "label": "Booked", "outcome": "success"},
            {"id": "end-not-homeowner", "type": "end", "label": "Not Homeowner", "outcome": "failure"},
        ],
        "edges": [
            {"source": "start", "target": "ask-homeowner"},
            {"source": "ask-homeowner", "target": "book", "label": "Yes"},
            {"source": "book", "target": "end-booked"},
            {"source": "ask-homeowner", "target": "end-not-homeowner", "label": "No"},
        ],
    }


@pytest.fixture
def appointment_flow():
    """A wider flow with several decisions and a shared end node."""
    return {
        "title": "Home Improvement Appointment Scheduling",
        "nodes": [
            {"id": "start", "type": "start", "label": "Inbound Call"},
            {"id": "greet", "type": "message", "label": "Greeting", "content": "Hi, thanks for calling!"},
            {"id": "ask-homeowner", "type": "decision", "label": "Homeowner Check", "question": "Are you the homeowner?"},
            {"id": "ask-project", "type": "question", "label": "Project Type", "question": "What project?"},
            {"id": "ask-timeline", "type": "decision", "label": "Timeline Check", "question": "When to start?"},
            {"id": "ask-budget", "type": "condition", "label": "Budget Range", "condition": "budget > 5000"},
            {"id": "collect-info", "type": "action", "label": "Collect Info", "description": "Get name and phone"},
            {"id": "offer-times", "type": "decision", "label": "Offer Times", "question": "Tuesday or Thursday?"},
            {"id": "confirm-booking", "type": "action", "label": "Book Appointment", "description": "Confirm"},
            {"id": "end-booked", "type": "end", "label": "Appointment Confirmed", "outcome": "success"},
            {"id": "end-not-homeowner", "type": "end", "label": "Not Homeowner", "outcome": "failure"},
            {"id": "end-not-ready", "type": "end", "label": "Not Ready Yet", "outcome": "neutral"},
            {"id": "end-no-times", "type": "end", "label": "No Available Times"},
        ],
        "edges": [
            {"source": "start", "target": "greet"},
            {"source": "greet", "target": "ask-homeowner"},
            {"source": "ask-homeowner", "target": "ask-project", "label": "Yes"},
            {"source": "ask-homeowner", "target": "end-not-homeowner", "label": "No"},
            {"source": "ask-project", "target": "ask-timeline", "label": "Valid Project"},
            {"source": "ask-project", "target": "end-not-ready", "label": "Not Interested"},
            {"source": "ask-timeline", "target": "ask-budget", "label": "Within 3 months"},
            {"source": "ask-timeline", "target": "end-not-ready", "label": "Not Sure / Later"},
            {"source": "ask-budget", "target": "collect-info", "label": "Has Budget"},
            {"source": "ask-budget", "target": "end-not-ready", "label": "No Budget"},
            {"source": "collect-info", "target": "offer-times"},
            {"source": "offer-times", "target": "confirm-booking", "label": "Time Selected"},
            {"source": "offer-times", "target": "end-no-times", "label": "No Times Work"},
            {"source": "confirm-booking", "target": "end-booked"},
        ],
    }

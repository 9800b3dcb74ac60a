import os
from fastapi.templating import Jinja2Templates
from services.history import format_clock, format_duration, short_call_id

# Starlette enables autoescaping for these templates
templates = Jinja2Templates(directory=os.path.join(os.path.dirname(__file__), "templates"))
templates.env.filters["duration"] = format_duration
templates.env.filters["clock"] = format_clock
templates.env.filters["short_id"] = short_call_id

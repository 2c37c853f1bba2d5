import os

API_URL = os.getenv("COURSE_API_URL", "http://localhost:5001")
SESSION_FILE = os.getenv("COURSE_SESSION_FILE", os.path.join(os.path.expanduser("~"), ".course-site", "session.json"))

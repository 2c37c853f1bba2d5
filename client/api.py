import requests

from client import config
from client.session import SessionContext


class ApiError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


class CourseApiClient:
    """Calls the course-site REST API on behalf of one session."""

    def __init__(self, session: SessionContext, base_url: str | None = None, http=None) -> None:
        self.session = session
        self.base_url = (base_url or config.API_URL).rstrip("/")
        self.http = http or requests.Session()

    def _request(self, method: str, path: str, *, json=None, params=None, authenticated: bool = False):
        headers = self.session.auth_headers() if authenticated else {}
        try:
            resp = self.http.request(method, f"{self.base_url}{path}", json=json, params=params, headers=headers)
        except requests.RequestException as exc:
            raise ApiError(0, f"Network error: {exc}") from exc

        if resp.status_code >= 400:
            raise ApiError(resp.status_code, _error_message(resp))
        content_type = resp.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            return resp.json()
        return resp.text

    def list_courses(self) -> list[dict]:
        return self._request("GET", "/api/courses")

    def get_course(self, course_id) -> dict:
        return self._request("GET", f"/api/courses/{course_id}")

    def create_course(self, title: str, description: str) -> dict:
        return self._request(
            "POST", "/api/courses", json={"title": title, "description": description}, authenticated=True
        )

    def delete_course(self, course_id) -> dict:
        return self._request("DELETE", f"/api/courses/{course_id}", authenticated=True)

    def list_lessons(self, course_id) -> list[dict]:
        return self._request("GET", f"/api/courses/{course_id}/lessons")

    def create_lesson(self, course_id, title: str, content: str) -> dict:
        return self._request(
            "POST", f"/api/courses/{course_id}/lessons", json={"title": title, "content": content}, authenticated=True
        )

    def signup(self, email: str, password: str, name: str, role: str = "student") -> dict:
        data = self._request(
            "POST", "/api/auth/signup", json={"email": email, "password": password, "name": name, "role": role}
        )
        if data.get("token"):
            self.session.save(data["token"], data["user"])
        return data

    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.session.save(data["token"], data["user"])
        return data

    def verify_email(self, token: str) -> str:
        return self._request("GET", "/api/auth/verify-email", params={"token": token})

    def logout(self) -> None:
        self.session.clear()


def _error_message(resp) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {resp.status_code}"

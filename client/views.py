"""View state for the course list, course detail, the add forms and login/signup.

List and detail views start in ``loading`` and settle in a data state or
``error``; the login and signup views start ``idle``.
Nothing is cached between navigations: every ``refresh()`` re-fetches.
"""
from client.api import ApiError, CourseApiClient

LOADING = "loading"
IDLE = "idle"
LOGGED_IN = "logged_in"
PENDING_VERIFICATION = "pending_verification"
LIST = "list"
DETAIL = "detail"
ERROR = "error"

# 401 and 403 are shown the same way.
NOT_ALLOWED_MESSAGE = "You are not allowed to do that. Please log in with the right account."
FAILURE_MESSAGE = "Something went wrong. Please try again."
UNVERIFIED_MESSAGE = "Please verify your email before logging in."


class FormState:
    def __init__(
        self,
        failure_message: str = FAILURE_MESSAGE,
        not_allowed_message: str = NOT_ALLOWED_MESSAGE,
        **fields,
    ) -> None:
        self.initial = dict(fields)
        self.fields = dict(fields)
        self.failure_message = failure_message
        self.not_allowed_message = not_allowed_message
        self.submitting = False
        self.error: str | None = None

    def set(self, name: str, value) -> None:
        self.fields[name] = value

    def reset(self) -> None:
        self.fields = dict(self.initial)
        self.error = None

    def submit(self, action):
        """Run ``action(**fields)``; any API failure becomes an inline error."""
        self.submitting = True
        self.error = None
        try:
            return action(**self.fields)
        except ApiError as exc:
            if exc.status_code in (401, 403):
                self.error = self.not_allowed_message
            elif exc.is_client_error:
                self.error = exc.message
            else:
                self.error = self.failure_message
            return None
        finally:
            self.submitting = False


class CourseListView:
    def __init__(self, api: CourseApiClient) -> None:
        self.api = api
        self.state = LOADING
        self.courses: list[dict] = []
        self.error: str | None = None
        self.alert: str | None = None
        self.deleting_id = None
        self.add_form = FormState(failure_message="Failed to add course.", title="", description="")

    @property
    def can_manage(self) -> bool:
        return self.api.session.is_admin

    def refresh(self) -> str:
        self.state = LOADING
        self.error = None
        try:
            self.courses = self.api.list_courses()
        except ApiError as exc:
            self.courses = []
            self.error = exc.message
            self.state = ERROR
            return self.state
        self.state = LIST
        return self.state

    def open(self, course_id) -> "CourseDetailView":
        view = CourseDetailView(self.api, course_id)
        view.refresh()
        return view

    def add_course(self) -> dict | None:
        if not self.can_manage:
            self.add_form.error = NOT_ALLOWED_MESSAGE
            return None
        created = self.add_form.submit(self.api.create_course)
        if created is not None:
            self.add_form.reset()
            self.refresh()
        return created

    def delete_course(self, course_id) -> bool:
        if not self.can_manage:
            self.alert = NOT_ALLOWED_MESSAGE
            return False
        self.deleting_id = course_id
        self.alert = None
        try:
            self.api.delete_course(course_id)
        except ApiError:
            self.alert = "Failed to delete course."
            return False
        finally:
            self.deleting_id = None
        self.refresh()
        return True


class CourseDetailView:
    def __init__(self, api: CourseApiClient, course_id) -> None:
        self.api = api
        self.course_id = course_id
        self.state = LOADING
        self.course: dict | None = None
        self.error: str | None = None
        self.lesson_form = FormState(failure_message="Failed to add lesson.", title="", content="")

    @property
    def lessons(self) -> list[dict]:
        return (self.course or {}).get("lessons", [])

    def refresh(self) -> str:
        self.state = LOADING
        self.error = None
        try:
            self.course = self.api.get_course(self.course_id)
        except ApiError as exc:
            self.course = None
            self.error = exc.message
            self.state = ERROR
            return self.state
        self.state = DETAIL
        return self.state

    def add_lesson(self) -> dict | None:
        created = self.lesson_form.submit(
            lambda title, content: self.api.create_lesson(self.course_id, title, content)
        )
        if created is not None:
            self.lesson_form.reset()
            self.refresh()
        return created



class LoginView:
    def __init__(self, api: CourseApiClient) -> None:
        self.api = api
        self.form = FormState(
            failure_message="Login failed. Please try again.",
            not_allowed_message=UNVERIFIED_MESSAGE,
            email="",
            password="",
        )
        self.state = LOGGED_IN if api.session.is_authenticated else IDLE

    @property
    def user(self) -> dict | None:
        return self.api.session.user

    def submit(self) -> dict | None:
        result = self.form.submit(self.api.login)
        if result is not None:
            self.form.reset()
            self.state = LOGGED_IN
        return result

    def logout(self) -> None:
        self.api.logout()
        self.state = IDLE


class SignupView:
    def __init__(self, api: CourseApiClient) -> None:
        self.api = api
        self.form = FormState(
            failure_message="Signup failed. Please try again.",
            email="",
            password="",
            name="",
            role="student",
        )
        self.state = IDLE
        self.message: str | None = None

    def submit(self) -> dict | None:
        self.message = None
        result = self.form.submit(self.api.signup)
        if result is None:
            return None

        self.form.reset()
        if result.get("token"):
            self.state = LOGGED_IN
        else:
            # Verification is on: the account exists but no session was issued.
            self.state = PENDING_VERIFICATION
            self.message = result.get("message")
        return result

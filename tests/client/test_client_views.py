import pytest

from client import views
from client.api import ApiError
from client.session import SessionContext


class FakeApi:
    def __init__(self, role: str | None = None) -> None:
        self.session = SessionContext(path='unused.json')
        if role:
            self.session.token = 'tok'
            self.session.user = {'id': 1, 'role': role}
        self.courses = [{'id': 1, 'title': 'DB 101', 'description': 'intro', 'lessons': []}]
        self.list_calls = 0
        self.fail_list = None
        self.fail_delete = None
        self.fail_create = None
        self.fail_login = None
        self.pending_verification = False
        self.signups: list[tuple[str, str, str]] = []

    def list_courses(self):
        self.list_calls += 1
        if self.fail_list:
            raise self.fail_list
        return [dict(course) for course in self.courses]

    def get_course(self, course_id):
        for course in self.courses:
            if course['id'] == course_id:
                return dict(course)
        raise ApiError(404, 'Course not found')

    def create_course(self, title, description):
        if self.fail_create:
            raise self.fail_create
        course = {'id': len(self.courses) + 1, 'title': title, 'description': description, 'lessons': []}
        self.courses.append(course)
        return course

    def delete_course(self, course_id):
        if self.fail_delete:
            raise self.fail_delete
        self.courses = [course for course in self.courses if course['id'] != course_id]
        return {'success': True}

    def login(self, email, password):
        if self.fail_login:
            raise self.fail_login
        user = {'id': 9, 'email': email, 'name': 'Ada', 'role': 'student'}
        self.session.token = 'tok'
        self.session.user = user
        return {'token': 'tok', 'user': user}

    def signup(self, email, password, name, role):
        self.signups.append((email, name, role))
        if self.pending_verification:
            return {'message': 'Signup successful! Please check your email to verify your account.'}
        user = {'id': 10, 'email': email, 'name': name, 'role': role}
        self.session.token = 'tok'
        self.session.user = user
        return {'token': 'tok', 'user': user}

    def logout(self):
        self.session.token = None
        self.session.user = None

    def create_lesson(self, course_id, title, content):
        if not title or not content:
            raise ApiError(400, 'Invalid input')
        lesson = {'id': 1, 'title': title, 'content': content, 'courseId': course_id}
        for course in self.courses:
            if course['id'] == course_id:
                course['lessons'] = course['lessons'] + [lesson]
        return lesson


def test_list_view_moves_from_loading_to_list() -> None:
    view = views.CourseListView(FakeApi())

    assert view.state == views.LOADING
    assert view.refresh() == views.LIST
    assert [course['title'] for course in view.courses] == ['DB 101']


def test_list_view_moves_to_error_on_failure() -> None:
    api = FakeApi()
    api.fail_list = ApiError(0, 'Network error: refused')
    view = views.CourseListView(api)

    assert view.refresh() == views.ERROR
    assert view.error == 'Network error: refused'
    assert view.courses == []


def test_every_refresh_refetches() -> None:
    api = FakeApi()
    view = views.CourseListView(api)

    view.refresh()
    view.refresh()

    assert api.list_calls == 2


def test_only_admin_can_manage() -> None:
    assert views.CourseListView(FakeApi(role='admin')).can_manage
    assert not views.CourseListView(FakeApi(role='instructor')).can_manage
    assert not views.CourseListView(FakeApi()).can_manage


def test_admin_delete_refreshes_list() -> None:
    api = FakeApi(role='admin')
    view = views.CourseListView(api)
    view.refresh()

    assert view.delete_course(1) is True
    assert view.courses == []
    assert view.deleting_id is None


def test_delete_failure_sets_alert() -> None:
    api = FakeApi(role='admin')
    api.fail_delete = ApiError(500, 'Internal server error')
    view = views.CourseListView(api)
    view.refresh()

    assert view.delete_course(1) is False
    assert view.alert == 'Failed to delete course.'
    assert len(view.courses) == 1


def test_non_admin_delete_is_refused_locally() -> None:
    api = FakeApi(role='student')
    view = views.CourseListView(api)

    assert view.delete_course(1) is False
    assert view.alert == views.NOT_ALLOWED_MESSAGE
    assert len(api.courses) == 1


def test_add_course_form_shows_inline_error_for_bad_input() -> None:
    api = FakeApi(role='admin')
    api.fail_create = ApiError(400, 'Invalid input')
    view = views.CourseListView(api)
    view.add_form.set('title', 'DB 201')

    assert view.add_course() is None
    assert view.add_form.error == 'Invalid input'
    assert view.add_form.submitting is False


@pytest.mark.parametrize('status_code', [401, 403])
def test_form_treats_401_and_403_alike(status_code: int) -> None:
    api = FakeApi(role='admin')
    api.fail_create = ApiError(status_code, 'whatever the server said')
    view = views.CourseListView(api)
    view.add_form.set('title', 'T')
    view.add_form.set('description', 'D')

    view.add_course()

    assert view.add_form.error == views.NOT_ALLOWED_MESSAGE


def test_form_shows_generic_error_for_server_failures() -> None:
    form = views.FormState(title='T')

    def failing(title):
        raise ApiError(500, 'Internal server error')

    assert form.submit(failing) is None
    assert form.error == views.FAILURE_MESSAGE
    assert form.submitting is False


def test_add_course_network_failure_sets_inline_error() -> None:
    api = FakeApi(role='admin')
    api.fail_create = ApiError(0, 'Network error: refused')
    view = views.CourseListView(api)
    view.add_form.set('title', 'T')
    view.add_form.set('description', 'D')

    assert view.add_course() is None
    assert view.add_form.error == 'Failed to add course.'


def test_add_course_success_resets_form_and_refreshes() -> None:
    api = FakeApi(role='admin')
    view = views.CourseListView(api)
    view.add_form.set('title', 'DB 201')
    view.add_form.set('description', 'advanced')

    created = view.add_course()

    assert created['title'] == 'DB 201'
    assert view.add_form.fields == {'title': '', 'description': ''}
    assert [course['title'] for course in view.courses] == ['DB 101', 'DB 201']


def test_detail_view_loads_course_and_adds_lessons() -> None:
    api = FakeApi()
    detail = views.CourseListView(api).open(1)

    assert detail.state == views.DETAIL
    detail.lesson_form.set('title', 'L1')
    detail.lesson_form.set('content', 'C')
    detail.add_lesson()

    assert [lesson['title'] for lesson in detail.lessons] == ['L1']


def test_detail_view_errors_for_missing_course() -> None:
    detail = views.CourseDetailView(FakeApi(), 42)

    assert detail.refresh() == views.ERROR
    assert detail.error == 'Course not found'
    assert detail.lessons == []


def test_login_view_logs_in_and_out() -> None:
    api = FakeApi()
    view = views.LoginView(api)
    assert view.state == views.IDLE

    view.form.set('email', 'ada@example.com')
    view.form.set('password', 'pw')
    view.submit()

    assert view.state == views.LOGGED_IN
    assert view.user['email'] == 'ada@example.com'
    assert view.form.fields == {'email': '', 'password': ''}

    view.logout()

    assert view.state == views.IDLE
    assert not api.session.is_authenticated


def test_login_view_shows_server_error_inline() -> None:
    api = FakeApi()
    api.fail_login = ApiError(400, 'Invalid credentials')
    view = views.LoginView(api)

    assert view.submit() is None
    assert view.state == views.IDLE
    assert view.form.error == 'Invalid credentials'


def test_login_view_asks_unverified_users_to_verify() -> None:
    api = FakeApi()
    api.fail_login = ApiError(403, 'Please verify your email before logging in.')
    view = views.LoginView(api)

    view.submit()

    assert view.form.error == views.UNVERIFIED_MESSAGE


def test_login_view_network_failure_sets_inline_error() -> None:
    api = FakeApi()
    api.fail_login = ApiError(0, 'Network error: refused')
    view = views.LoginView(api)

    assert view.submit() is None
    assert view.form.error == 'Login failed. Please try again.'


def test_signup_view_defaults_to_student_role() -> None:
    api = FakeApi()
    view = views.SignupView(api)
    view.form.set('email', 'new@example.com')
    view.form.set('password', 'pw')
    view.form.set('name', 'New')

    view.submit()

    assert api.signups == [('new@example.com', 'New', 'student')]
    assert view.state == views.LOGGED_IN
    assert view.form.fields['role'] == 'student'


def test_signup_view_shows_pending_verification_message() -> None:
    api = FakeApi()
    api.pending_verification = True
    view = views.SignupView(api)
    view.form.set('email', 'new@example.com')

    view.submit()

    assert view.state == views.PENDING_VERIFICATION
    assert 'verify' in view.message
    assert not api.session.is_authenticated

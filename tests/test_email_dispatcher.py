import pytest
import requests

from bench.services.email_dispatcher import EmailDispatcher, HttpTransport
from bench.utils.config import EmailSettings
from bench.utils.exceptions import ConfigError, UpstreamFailure, ValidationError


class Outbox:
    def __init__(self):
        self.messages = []

    def __call__(self, message):
        self.messages.append(message)


def test_template_render_and_default_subject():
    outbox = Outbox()
    dispatcher = EmailDispatcher(transport=outbox, sender="Bench <noreply@example.com>")
    message = dispatcher.send("reader@example.com", template="newsletter-welcome", data={"email": "reader@example.com"})

    assert message.subject == "Welcome to Sulphuric Bench Newsletter!"
    assert message.sender == "Bench <noreply@example.com>"
    assert "Welcome to Our Newsletter!" in message.html
    assert "reader@example.com" in message.html
    assert outbox.messages == [message]


def test_newsletter_content_is_escaped():
    dispatcher = EmailDispatcher(transport=Outbox())
    html = dispatcher.render("newsletter", {"subject": "Hi", "content": "<script>x</script>"})
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_verification_template():
    dispatcher = EmailDispatcher(transport=Outbox())
    html = dispatcher.render("email-verification", {"name": "Sam", "verificationCode": "482913"})
    assert "Hi Sam," in html
    assert "482913" in html


def test_send_errors():
    dispatcher = EmailDispatcher(transport=Outbox())
    with pytest.raises(ValidationError):
        dispatcher.send("", template="newsletter-welcome")
    with pytest.raises(ValidationError):
        dispatcher.send("a@example.com", template="no-such-template")


def test_raw_html_message():
    outbox = Outbox()
    dispatcher = EmailDispatcher(transport=outbox)
    dispatcher.send("a@example.com", subject="Plain", html="<p>hello</p>")
    assert outbox.messages[0].html == "<p>hello</p>"
    assert outbox.messages[0].template is None


class FakeResponse:
    def __init__(self, status_code, text=""):
        self.status_code = status_code
        self.text = text


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.posts = []

    def post(self, url, json=None, timeout=None):
        self.posts.append((url, json, timeout))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def test_http_transport_posts_payload():
    session = FakeSession(FakeResponse(200))
    dispatcher = EmailDispatcher(transport=HttpTransport("https://fn.example.co/send-email", session=session))
    dispatcher.send("a@example.com", template="newsletter-welcome", data={"email": "a@example.com"})

    url, payload, timeout = session.posts[0]
    assert url == "https://fn.example.co/send-email"
    assert payload["to"] == "a@example.com"
    assert payload["template"] == "newsletter-welcome"
    assert timeout == 10.0


def test_http_transport_failures():
    for response in (FakeResponse(502, "bad gateway"), requests.ConnectionError("refused")):
        transport = HttpTransport("https://fn.example.co/send-email", session=FakeSession(response))
        with pytest.raises(UpstreamFailure):
            EmailDispatcher(transport=transport).send("a@example.com", subject="x", html="y")


def test_from_settings():
    assert EmailDispatcher.from_settings(EmailSettings()).sender.startswith("Sulphuric Bench")
    with pytest.raises(ConfigError):
        EmailDispatcher.from_settings(EmailSettings(transport="http"))
    with pytest.raises(ConfigError):
        EmailDispatcher.from_settings(EmailSettings(transport="pigeon"))

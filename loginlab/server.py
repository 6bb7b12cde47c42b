# server.py
import logging

from flask import Flask, current_app, redirect, request, session
from flask_bcrypt import Bcrypt
from markupsafe import escape

from loginlab.accounts import AccountStore
from loginlab.auth import AdminCredentials, SessionUser, authenticate
from loginlab.config import Config
from loginlab.errors import DuplicateError, InvalidCredentials, LockedError, ValidationError
from loginlab.throttle import AttemptThrottle

LOGIN_PAGE = "/login.html"
ERROR_PAGE = "/error.html"


class LoginLab:
    """Per-app state: the account store, the throttle and the admin login."""

    def __init__(self, accounts, throttle, admin):
        self.accounts = accounts
        self.throttle = throttle
        self.admin = admin


def create_app(config=None):
    app = Flask(__name__, static_folder="public", static_url_path="")
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    bcrypt = Bcrypt(app)
    admin = AdminCredentials(app.config["ADMIN_USERNAME"], app.config["ADMIN_PASSWORD"])
    app.extensions["loginlab"] = LoginLab(
        accounts=AccountStore(bcrypt, reserved=[admin.username]),
        throttle=AttemptThrottle(app.config["MAX_ATTEMPTS"], app.config["LOCK_SECONDS"]),
        admin=admin,
    )

    app.add_url_rule("/", view_func=index)
    app.add_url_rule("/register", view_func=register, methods=["POST"])
    app.add_url_rule("/login", view_func=login, methods=["POST"])
    app.add_url_rule("/logout", view_func=logout)
    app.add_url_rule("/welcome", view_func=welcome)
    app.add_url_rule("/admin", view_func=admin_panel)
    app.add_url_rule("/health", view_func=health)
    return app


def _lab() -> LoginLab:
    return current_app.extensions["loginlab"]


def _current_user():
    return SessionUser.from_session(session.get("user"))


def render_page(name, **values):
    """Read pages/<name> and replace each {{KEY}} with its value.

    Values go in verbatim; escape anything user supplied before passing it.
    """
    with current_app.open_resource(f"pages/{name}") as f:
        html = f.read().decode("utf-8")
    for key, value in values.items():
        html = html.replace("{{%s}}" % key, str(value))
    return html


def index():
    return redirect(LOGIN_PAGE)


def register():
    username = request.form.get("username", "")
    password = request.form.get("password", "")
    confirm = request.form.get("confirmPassword", "")
    try:
        _lab().accounts.register(username, password, confirm)
    except (ValidationError, DuplicateError) as e:
        return str(e), 400
    except Exception:
        current_app.logger.exception("registration failed")
        return "Server error while registering the user.", 500
    return redirect(f"{LOGIN_PAGE}?registered=1")


def login():
    lab = _lab()
    username = request.form.get("username", "")
    password = request.form.get("password", "")
    try:
        user = authenticate(username, password, lab.accounts, lab.throttle, lab.admin)
    except LockedError as e:
        msg = f"Too many failed attempts. Please wait {e.seconds_remaining} seconds."
        return msg, 429, {"Retry-After": str(e.seconds_remaining)}
    except InvalidCredentials:
        return redirect(ERROR_PAGE)
    except Exception:
        current_app.logger.exception("login failed")
        return "Server error during authentication.", 500

    session.clear()
    session["user"] = user.to_session()
    return redirect("/admin" if user.is_admin else "/welcome")


def logout():
    try:
        session.clear()
    except Exception:
        current_app.logger.exception("could not clear session")
        return "Could not log out.", 500
    return redirect(LOGIN_PAGE)


def welcome():
    user = _current_user()
    if user is None:
        return redirect(LOGIN_PAGE)
    if user.is_admin:
        return redirect("/admin")

    account = _lab().accounts.get(user.username)
    if account is None:
        # session outlived the process that issued it
        session.clear()
        return redirect(LOGIN_PAGE)
    return render_page(
        "welcome.html",
        USERNAME=escape(account.username),
        HASHED_PASSWORD=escape(account.password_hash),
    )


def admin_panel():
    user = _current_user()
    if user is None or not user.is_admin:
        return redirect(LOGIN_PAGE)

    rows = "\n".join(
        "<tr><td>%s</td><td><code>%s</code></td></tr>" % (escape(a.username), escape(a.password_hash))
        for a in _lab().accounts.list_accounts()
    )
    return render_page("admin.html", USERNAME=escape(user.username), TABLE_ROWS=rows)


def health():
    return "ok", 200


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = create_app()
    # Run only on localhost unless told otherwise
    app.run(host=app.config["HOST"], port=app.config["PORT"])


if __name__ == "__main__":
    main()

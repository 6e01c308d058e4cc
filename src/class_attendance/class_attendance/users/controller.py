from __future__ import annotations

import logging

from authlib.integrations.base_client import OAuthError
from flask import Flask, flash, jsonify, redirect, render_template, request, session, url_for

from ..common.web import api_login_required, current_user_id, json_error, json_object
from ..container import Container
from ..core.exceptions import AuthenticationError, ValidationError
from .oauth import google_client, profile_from_userinfo
from .service import SessionUser

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    app.jinja_env.globals["csrf_token"] = lambda: ""

    def _start_session(s_user: SessionUser, *, remember: bool = False) -> None:
        session.clear()
        session.permanent = bool(remember)
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["email"] = s_user.email
        session["role"] = s_user.role.value

    @app.route("/", endpoint="index")
    def index():
        if "user_id" in session:
            return redirect(url_for("dashboard"))
        return redirect(url_for("login"))

    @app.route("/login", methods=["GET", "POST"], endpoint="login")
    def login():
        if "user_id" in session:
            return redirect(url_for("dashboard"))

        if request.method == "POST":
            email = request.form.get("email", "")
            password = request.form.get("password", "")
            try:
                s_user = container.auth_service.authenticate(email, password)
                _start_session(s_user, remember=bool(request.form.get("remember_me")))
                flash("Login successful!", "success")
                return redirect(url_for("dashboard"))
            except AuthenticationError as e:
                flash(str(e), "danger")
            except Exception as e:
                logger.exception("Login failed")
                if bool(app.config.get("DEBUG", False)):
                    flash(f"System error while logging in: {e}", "danger")
                else:
                    flash("System error while logging in", "danger")

        return render_template("login.html", google_login=google_client(app) is not None)

    @app.route("/register", methods=["GET", "POST"], endpoint="register")
    def register_page():
        if request.method == "POST":
            try:
                container.user_service.register(
                    name=request.form.get("name", ""),
                    email=request.form.get("email", ""),
                    password=request.form.get("password", ""),
                    confirm_password=request.form.get("confirmPassword", ""),
                )
                flash("Registration successful! Please log in.", "success")
                return redirect(url_for("login"))
            except ValidationError as e:
                flash(str(e), "danger")
            except Exception:
                logger.exception("Registration failed")
                flash("System error while registering", "danger")

        return render_template("register.html")

    @app.route("/logout", endpoint="logout")
    def logout():
        session.clear()
        flash("You have been logged out.", "info")
        return redirect(url_for("login"))

    @app.route("/auth/google", endpoint="auth_google")
    def auth_google():
        client = google_client(app)
        if client is None:
            flash("Google sign-in is not configured", "warning")
            return redirect(url_for("login"))
        redirect_uri = app.config.get("GOOGLE_CALLBACK_URL") or url_for("auth_google_callback", _external=True)
        return client.authorize_redirect(redirect_uri)

    @app.route("/auth/google/callback", endpoint="auth_google_callback")
    def auth_google_callback():
        client = google_client(app)
        if client is None:
            flash("Google sign-in is not configured", "warning")
            return redirect(url_for("login"))

        try:
            token = client.authorize_access_token()
            userinfo = token.get("userinfo") or client.userinfo(token=token)
            s_user = container.auth_service.login_with_provider(profile_from_userinfo(userinfo))
        except (OAuthError, AuthenticationError, ValidationError) as e:
            logger.warning("Google sign-in failed: %s", e)
            flash("Google sign-in failed. Please try again.", "danger")
            return redirect(url_for("login"))

        _start_session(s_user)
        flash("Login successful!", "success")
        return redirect(url_for("dashboard"))

    @app.route("/api/login", methods=["POST"], endpoint="api_login")
    def api_login():
        try:
            data = json_object()
            s_user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        except ValidationError as e:
            return json_error(str(e), 400)
        except AuthenticationError as e:
            return json_error(str(e), 401)
        except Exception:
            logger.exception("Login failed")
            return json_error("Server error", 500)

        _start_session(s_user)
        return jsonify(
            {
                "success": True,
                "message": "Login successful",
                "user": {"id": s_user.user_id, "name": s_user.name, "email": s_user.email},
            }
        )

    @app.route("/api/register", methods=["POST"], endpoint="api_register")
    def api_register():
        try:
            data = json_object()
            user_id = container.user_service.register(
                name=data.get("name", ""),
                email=data.get("email", ""),
                password=data.get("password", ""),
                confirm_password=data.get("confirmPassword", ""),
            )
        except ValidationError as e:
            return json_error(str(e), 400)
        except Exception:
            logger.exception("Registration failed")
            return json_error("Server error", 500)

        user = container.user_service.get_profile(user_id)
        return jsonify(
            {
                "success": True,
                "message": "Registration successful",
                "user": user.to_safe_dict() if user else {"id": user_id},
            }
        )

    @app.route("/api/logout", methods=["POST"], endpoint="api_logout")
    def api_logout():
        session.clear()
        return jsonify({"success": True, "message": "Logout successful"})

    @app.route("/api/current-user", endpoint="api_current_user")
    @api_login_required
    def api_current_user():
        user = container.user_service.get_profile(current_user_id())
        if not user:
            session.clear()
            return json_error("Not logged in", 401)
        return jsonify({"success": True, "user": user.to_safe_dict()})

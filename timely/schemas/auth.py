from __future__ import annotations

from pydantic import BaseModel


class LoginForm(BaseModel):
    user: str = ""
    password: str = ""


class SignupForm(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""

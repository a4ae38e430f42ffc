from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator, ValidationInfo


# --- Auth

class RegisterReq(BaseModel):
    username: str = Field(min_length=3, description="Username must be at least 3 characters")
    email: EmailStr
    password: str = Field(min_length=8, description="Password must be at least 8 characters")
    confirm_password: str

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Passwords do not match")
        return v


class LoginReq(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserResp(BaseModel):
    id: int
    username: str
    email: EmailStr
    display_name: str | None = None
    avatar_url: str | None = None
    xp_points: int
    level: int
    login_streak: int


class TokenResp(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResp


# --- Learning

class ModuleOut(BaseModel):
    id: int
    title: str
    description: str | None = None
    language: str
    difficulty: str
    order_index: int
    class Config: from_attributes = True


class LessonOut(BaseModel):
    id: int
    module_id: int
    title: str
    order_index: int
    class Config: from_attributes = True


class ContentOut(BaseModel):
    id: int
    content_type: str
    content: str
    content_order: int
    class Config: from_attributes = True


class ModuleDetailOut(BaseModel):
    module: ModuleOut
    lessons: list[LessonOut]


class LessonDetailOut(BaseModel):
    lesson: LessonOut
    module: ModuleOut
    content: list[ContentOut]


class LessonProgressOut(BaseModel):
    lesson_id: int
    is_completed: bool
    last_position: int
    completed_at: datetime | None = None
    class Config: from_attributes = True


class ModuleProgressSummaryOut(BaseModel):
    total_lessons: int
    completed_lessons: int
    progress_percentage: int
    lesson_progress: list[LessonProgressOut]


class ModuleProgressOut(BaseModel):
    module_id: int
    progress_percentage: int
    completed: bool
    last_accessed: datetime | None = None
    module: ModuleOut | None = None
    class Config: from_attributes = True


class PositionReq(BaseModel):
    position: int = Field(ge=0)


# --- Games

class GameOut(BaseModel):
    id: int
    name: str
    description: str | None = None
    icon_name: str | None = None
    class Config: from_attributes = True


class ScoreReq(BaseModel):
    score: int = Field(ge=0)


class GameScoreOut(BaseModel):
    id: int
    game_id: int
    score: int
    played_at: datetime
    game: GameOut | None = None
    class Config: from_attributes = True


class LeaderboardEntry(BaseModel):
    id: int
    user_id: int
    username: str
    display_name: str | None = None
    avatar_url: str | None = None
    score: int
    played_at: datetime


class HighScoreOut(BaseModel):
    id: int
    name: str
    high_score: int


class UserGameStatsOut(BaseModel):
    games_played: int
    total_score: int
    high_scores: list[HighScoreOut]
    recent_games: list[GameScoreOut]


# --- Dashboard

class DashboardStatsOut(BaseModel):
    progress_percentage: int
    xp_points: int
    level: int
    login_streak: int
    achievement_count: int
    new_achievements: int


class LearningProgressItem(BaseModel):
    name: str
    progress: int


class RecentAchievementOut(BaseModel):
    id: int
    name: str
    description: str
    icon: str
    date: str


class RecentGameOut(BaseModel):
    id: int
    name: str
    score: int
    date: str
    icon: str


class SavedProjectOut(BaseModel):
    id: int
    name: str
    language: str
    last_edited: str
    status: str


# --- Profile

class ProfileOut(BaseModel):
    id: int
    username: str
    email: EmailStr
    display_name: str
    avatar_url: str | None = None


class ProfileUpdate(BaseModel):
    display_name: str = Field(min_length=2, max_length=50)
    avatar_url: str | None = None


class AchievementOut(BaseModel):
    code: str
    name: str
    description: str | None = None
    icon_name: str | None = None
    xp_reward: int
    earned_at: datetime


# --- Projects

class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    language: str = Field(min_length=1, max_length=50)
    description: str | None = None
    code_content: str = ""


class ProjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    language: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = None
    code_content: str | None = None
    status: str | None = None


class ProjectOut(BaseModel):
    id: int
    name: str
    language: str
    description: str | None = None
    code_content: str
    status: str
    updated_at: datetime
    class Config: from_attributes = True

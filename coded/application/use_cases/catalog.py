from ...domain.entities import LearningModule
from ...domain.errors import NotFound
from ..ports import IContentRepository


class ContentCatalog:
    def __init__(self, repo: IContentRepository):
        self.repo = repo

    def list_modules(self) -> list[LearningModule]:
        return self.repo.list_modules()

    def get_module_with_lessons(self, module_id: int) -> dict:
        module = self.repo.get_module(module_id)
        if module is None:
            raise NotFound("Module not found")
        return {"module": module, "lessons": self.repo.list_lessons(module_id)}

    def get_lesson_with_content(self, lesson_id: int) -> dict:
        lesson = self.repo.get_lesson(lesson_id)
        if lesson is None:
            raise NotFound("Lesson not found")
        return {
            "lesson": lesson,
            "module": self.repo.get_module(lesson.module_id),
            "content": self.repo.list_content(lesson_id),
        }

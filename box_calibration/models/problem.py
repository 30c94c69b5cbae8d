"""Problem record models produced by the analysis model."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from box_calibration.models.rectangle import Rectangle

ErrorType = Literal["calculation", "fact", "grammar", "logic", "unknown", "unanswered"]


class ProblemRecord(BaseModel):
    """A single detected homework problem.

    Only ``bounding_box`` matters for calibration; the remaining fields are
    carried through untouched.
    """

    id: str = Field(description="Problem identifier")
    subject: str = Field(default="", description="Subject, e.g. 'Math'")
    question_text: str = Field(default="", description="Recognized question text")
    student_answer: str = Field(default="", description="Answer written by the student")
    is_correct: bool = Field(default=False, description="Whether the student answer is correct")
    correct_answer: str = Field(default="", description="Expected answer")
    verification_code: str | None = Field(default=None, description="Code used to verify")
    hint: str = Field(default="", description="Hint for the student")
    solution_steps: list[str] = Field(default_factory=list, description="Worked solution steps")
    error_type: ErrorType | None = Field(default=None, description="Kind of mistake")
    bounding_box: Rectangle = Field(description="Region of the problem in the source image")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": "q1",
                "subject": "Math",
                "questionText": "$3 + 4 = ?$",
                "studentAnswer": "8",
                "isCorrect": False,
                "correctAnswer": "7",
                "hint": "Count on from 3.",
                "solutionSteps": ["$3 + 4 = 7$"],
                "errorType": "calculation",
                "boundingBox": {"ymin": 120, "xmin": 80, "ymax": 260, "xmax": 920},
            }
        },
    )


class AnalysisResult(BaseModel):
    """Structured result returned by the analysis model."""

    problems: list[ProblemRecord] = Field(default_factory=list, description="Detected problems")
    overall_summary: str = Field(default="", description="Summary of the whole page")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def default_selection(self) -> str | None:
        """
        Get the problem selected when a result first arrives.

        Returns:
            str | None: The first problem id, or None when there are no problems.
        """
        if not self.problems:
            return None
        return self.problems[0].id

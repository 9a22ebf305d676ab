from .user import User, UserRole, UserStatus, SessionToken
from .otp import OtpCode
from .company import Company, CompanyStatus, Manager, ManagerStatus
from .exam import Exam, ExamQuestion, ExamStatus, Question, QuestionType, Difficulty
from .exam_set import ExamSet, ExamSetItem, ExamSetStatus
from .assignment import ExamAssignment, AssignmentStatus
from .result import ExamResult, ExamResultStatus
from .assessment import (
    Assessment, AssessmentQuestion, AssessmentQuestionType, AssessmentStatus, AssessmentStep,
    AssessmentTemplate, AssessmentTemplateStatus,
)

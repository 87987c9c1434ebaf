# Schemas package
from .shared import ERROR_RESPONSES, ErrorDetail, ErrorResponse, SuccessResponse
from .auth import UserInfo
from .posts import PostResponse, LikeResponse, CommentCreate, CommentCreated, CommentResponse
from .profile import PasswordUpdate, ProfileResponse, UserSummary
from .chats import ChatCreate, ChatCreated, ChatSummary, ChatParticipant, MessageResponse, MessageCreated
from .admin import AdminStats, AdminUserRow, BlockRequest, ReportCreate, ReportCreated, ReportResponse, ReportStatusUpdate, AdminMessageCreate, AdminMessageResponse

"""Build SignalWire Markup Language (SWML) call-flow documents.

    from swml import Document, Play

    doc = Document()
    main = doc.add_section("main")
    main.append("answer")
    main.append(Play(url="say:Hello from SWML"))
    print(doc.to_yaml())
"""

from swml.config import ConfigurationError, DocumentConfig, load_config
from swml.document import Document
from swml.exceptions import (
    DuplicateSectionError,
    InvalidNameError,
    SchemaViolationError,
    SWMLError,
)
from swml.schemas import (
    AI,
    ACTION_MODELS,
    AIDirection,
    AILanguage,
    AIParams,
    AIPrompt,
    AIPronounce,
    Answer,
    Branch,
    BranchResult,
    Cond,
    Connect,
    DataMap,
    Denoise,
    Execute,
    Expression,
    ExpressionOutput,
    FunctionArgument,
    FunctionConfig,
    FunctionMetaData,
    Goto,
    Hangup,
    HangupReason,
    Instruction,
    JoinRoom,
    Play,
    Prompt,
    ReceiveFax,
    Record,
    RecordAudioDirection,
    RecordCall,
    RecordCallAudioDirection,
    RecordFormat,
    Request,
    RequestMethod,
    Return,
    SendDigits,
    SendFax,
    SendSMS,
    Set,
    SIPRefer,
    StopDenoise,
    StopRecordCall,
    StopTap,
    SWAIGConfig,
    Switch,
    Tap,
    Transfer,
    Unset,
    WebhookConfig,
    WebHookDefaults,
    WebhookOutput,
    to_swml,
    validate_instruction,
)
from swml.section import Section

__all__ = [
    "ACTION_MODELS",
    "AI",
    "AIDirection",
    "AILanguage",
    "AIParams",
    "AIPrompt",
    "AIPronounce",
    "Answer",
    "Branch",
    "BranchResult",
    "Cond",
    "ConfigurationError",
    "Connect",
    "DataMap",
    "Denoise",
    "Document",
    "DocumentConfig",
    "DuplicateSectionError",
    "Execute",
    "Expression",
    "ExpressionOutput",
    "FunctionArgument",
    "FunctionConfig",
    "FunctionMetaData",
    "Goto",
    "Hangup",
    "HangupReason",
    "Instruction",
    "InvalidNameError",
    "JoinRoom",
    "Play",
    "Prompt",
    "ReceiveFax",
    "Record",
    "RecordAudioDirection",
    "RecordCall",
    "RecordCallAudioDirection",
    "RecordFormat",
    "Request",
    "RequestMethod",
    "Return",
    "SchemaViolationError",
    "Section",
    "SendDigits",
    "SendFax",
    "SendSMS",
    "Set",
    "SIPRefer",
    "StopDenoise",
    "StopRecordCall",
    "StopTap",
    "SWAIGConfig",
    "SWMLError",
    "Switch",
    "Tap",
    "Transfer",
    "Unset",
    "WebhookConfig",
    "WebHookDefaults",
    "WebhookOutput",
    "load_config",
    "to_swml",
    "validate_instruction",
]

"""Pydantic schemas for SWML instructions.

Every instruction is a single-key record, `{"<action>": {...config}}`, or one
of a handful of bare string shorthands (`"answer"`, `"hangup"`, ...). Each
action has one model here; the model only holds the configuration and adds
the action key when rendered with `to_swml`, so

    Play(url="say:Hello").to_swml()

gives `{"play": {"url": "say:Hello"}}`. Wire-form mappings validate back
into the same models, which lets callers mix typed models and plain dicts.

Field names are sent to the call runtime verbatim. Names that clash with
Python keywords use aliases (`else_`, `from_`, `with_`); `to_swml` renders
the alias.

Optional fields default to None and are only rendered when explicitly set,
so `beep=False` is kept while `beep` is dropped when it was never given.
Scalars are strict: `"30"` is not an integer and `"no"` is not a boolean.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    Tag,
    TypeAdapter,
    ValidationError,
    model_validator,
)

from swml.exceptions import SchemaViolationError

# =============================================================================
# Shared Types
# =============================================================================

# SWML numbers are JSON numbers; keep ints as ints so output matches input.
# Strict so that "30" or True are rejected instead of coerced.
Number = StrictInt | StrictFloat

# Open key/value bags passed to the runtime without interpretation.
OpenMap = dict[str, Any]

SHORTHAND_TAG = "shorthand"

# Bare strings that mean "run this action with its defaults".
Shorthand = Literal[
    "answer",
    "hangup",
    "denoise",
    "stop_denoise",
    "record",
    "receive_fax",
    "stop_record_call",
    "stop_tap",
    "return",
]


# =============================================================================
# Enums
# =============================================================================


class RequestMethod(str, Enum):
    """HTTP methods accepted by `request` and SWAIG webhooks."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class HangupReason(str, Enum):
    """Reason reported to the far end on hangup."""

    HANGUP = "hangup"
    BUSY = "busy"
    DECLINE = "decline"


class RecordFormat(str, Enum):
    """Audio container for recordings."""

    WAV = "wav"
    MP3 = "mp3"


class RecordAudioDirection(str, Enum):
    """Which leg `record` captures."""

    SPEAK = "speak"
    LISTEN = "listen"


class RecordCallAudioDirection(str, Enum):
    """Which leg `record_call` captures."""

    SPEAK = "speak"
    LISTEN = "listen"
    BOTH = "both"


class AIDirection(str, Enum):
    """Whether the AI agent is answering or placing the call."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"


# =============================================================================
# Base Models
# =============================================================================


class SWMLModel(BaseModel):
    """Base for every SWML configuration record.

    Unknown fields are rejected so that typos in field names surface at
    build time instead of being silently ignored by the runtime.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    def to_swml(self) -> Any:
        return to_swml(self)


class Action(SWMLModel):
    """An instruction model. Subclasses set `action` to their wire key."""

    action: ClassVar[str]

    @model_validator(mode="before")
    @classmethod
    def _unwrap_action_key(cls, data: Any) -> Any:
        # Accept the wire form {"<action>": {...}} as well as plain fields.
        if isinstance(data, Mapping) and len(data) == 1 and cls.action in data:
            return cls._fields_from_payload(data[cls.action], data)
        return data

    @classmethod
    def _fields_from_payload(cls, payload: Any, data: Any) -> Any:
        if payload is None:
            return {}
        if isinstance(payload, Mapping):
            return payload
        return data

    def _payload_from_fields(self, fields: dict[str, Any]) -> Any:
        return fields

    def to_swml(self) -> dict[str, Any]:
        """Render as `{action: config}`."""
        return to_swml(self)


def to_swml(value: Any) -> Any:
    """Convert models, mappings and sequences into plain SWML data.

    Only fields that were explicitly set are rendered, under their aliases.
    Enums become their values. Plain mappings may hold models at any depth.
    Each nested container costs one interpreter frame, so
    depth is bounded only by the recursion limit.
    """
    if isinstance(value, SWMLModel):
        fields: dict[str, Any] = {}
        fields_set = value.model_fields_set
        for name, info in type(value).model_fields.items():
            if name in fields_set:
                fields[info.alias or name] = to_swml(getattr(value, name))
        if isinstance(value, Action):
            return {value.action: value._payload_from_fields(fields)}
        return fields
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        tree = {}
        for key, item in value.items():
            tree[str(key)] = to_swml(item)
        return tree
    if isinstance(value, (list, tuple)):
        items = []
        for item in value:
            items.append(to_swml(item))
        return items
    return value


class OpenAction(Action):
    """An action whose configuration is a free-form mapping."""

    options: OpenMap = Field(default_factory=dict)

    @classmethod
    def _fields_from_payload(cls, payload: Any, data: Any) -> Any:
        if payload is None:
            return {}
        if isinstance(payload, Mapping):
            return {"options": dict(payload)}
        return data

    def _payload_from_fields(self, fields: dict[str, Any]) -> Any:
        return fields.get("options", {})


# =============================================================================
# Control Flow
# =============================================================================


class Cond(Action):
    """If/else over two instruction branches.

    `when` is evaluated by the runtime; both branches are always rendered,
    an empty branch stays an empty list.
    """

    action = "cond"

    when: str
    then: list["Instruction"]
    else_: list["Instruction"] = Field(alias="else")


class Switch(Action):
    """Dispatch on the value of a variable."""

    action = "switch"

    variable: str
    case: dict[str, list["Instruction"]] | None = None  # value -> branch
    default: list["Instruction"] | None = None


class Execute(Action):
    """Call a section (or remote SWML) as a subroutine."""

    action = "execute"

    dest: str  # Section name or URL
    params: OpenMap | None = None
    meta: OpenMap | None = None
    on_return: list["Instruction"] | None = None


class Transfer(Action):
    """Hand control to another section or URL without returning."""

    action = "transfer"

    dest: str
    params: OpenMap | None = None
    meta: OpenMap | None = None


class Goto(Action):
    """Jump to a label in the current section."""

    action = "goto"

    label: str
    when: str | None = None
    max: StrictInt | None = None  # Loop guard, runtime default 100
    meta: OpenMap | None = None


class Return(Action):
    """Return a value from an executed section.

    Use the bare string "return" to return nothing.
    """

    action = "return"

    value: str | OpenMap

    @classmethod
    def _fields_from_payload(cls, payload: Any, data: Any) -> Any:
        return {"value": payload}

    def _payload_from_fields(self, fields: dict[str, Any]) -> Any:
        return fields["value"]


class Set(Action):
    """Assign script variables."""

    action = "set"

    variables: OpenMap = Field(default_factory=dict)

    @classmethod
    def _fields_from_payload(cls, payload: Any, data: Any) -> Any:
        if isinstance(payload, Mapping):
            return {"variables": dict(payload)}
        return data

    def _payload_from_fields(self, fields: dict[str, Any]) -> Any:
        return fields.get("variables", {})


class Unset(Action):
    """Remove one or more script variables."""

    action = "unset"

    vars: str | list[str]


class Request(Action):
    """Send an HTTP request; the response lands in `request_result`."""

    action = "request"

    url: str
    method: RequestMethod
    headers: OpenMap | None = None
    body: str | OpenMap | None = None
    timeout: Number | None = None  # Seconds, runtime default 5.0
    connect_timeout: Number | None = None  # Seconds, runtime default 5.0
    result: "BranchResult | None" = None
    save_variables: StrictBool | None = None


# =============================================================================
# Call Actions
# =============================================================================


class Answer(Action):
    """Answer an incoming call."""

    action = "answer"

    max_duration: StrictInt | None = None  # Seconds


class Hangup(Action):
    """End the call."""

    action = "hangup"

    reason: HangupReason | None = None


class Connect(Action):
    """Dial and bridge a new leg.

    The destination is one of `to` (a single number or SIP/WebRTC address),
    `serial` (tried in order), `parallel` (rung at once) or `serial_parallel`
    (groups tried in order, each group rung at once). Device entries are
    plain mappings such as `{"to": "+15551234567", "timeout": 20}`.
    """

    action = "connect"

    to: str | None = None
    serial: list[OpenMap] | None = None
    parallel: list[OpenMap] | None = None
    serial_parallel: list[list[OpenMap]] | None = None
    from_: str | None = Field(default=None, alias="from")
    headers: OpenMap | None = None
    codecs: str | None = None
    webrtc_media: StrictBool | None = None
    session_timeout: StrictInt | None = None
    ringback: list[str] | None = None
    timeout: StrictInt | None = None  # Seconds to wait for answer
    max_duration: StrictInt | None = None
    answer_on_bridge: StrictBool | None = None
    call_state_url: str | None = None
    call_state_events: list[str] | None = None
    result: "BranchResult | None" = None


class Denoise(OpenAction):
    """Start noise reduction."""

    action = "denoise"


class StopDenoise(OpenAction):
    """Stop noise reduction."""

    action = "stop_denoise"


class JoinRoom(Action):
    """Join a video/audio room."""

    action = "join_room"

    name: str


class Play(Action):
    """Play audio, TTS (`say:`), silence or ringtones."""

    action = "play"

    url: str | None = None
    urls: list[str] | None = None
    volume: Number | None = None  # -40 to 40 dB
    say_voice: str | None = None
    say_language: str | None = None
    say_gender: str | None = None


class Prompt(Action):
    """Play media and collect digits and/or speech."""

    action = "prompt"

    play: str | list[str]
    volume: Number | None = None
    say_voice: str | None = None
    say_language: str | None = None
    say_gender: str | None = None
    max_digits: StrictInt | None = None
    terminators: str | None = None
    digit_timeout: Number | None = None  # Seconds
    initial_timeout: Number | None = None  # Seconds
    speech_timeout: Number | None = None
    speech_end_timeout: Number | None = None
    speech_language: str | None = None
    speech_hints: list[str] | None = None
    result: "BranchResult | None" = None


class ReceiveFax(OpenAction):
    """Receive a fax on the current call."""

    action = "receive_fax"


class Record(Action):
    """Record the caller's audio in the foreground."""

    action = "record"

    stereo: StrictBool | None = None
    format: RecordFormat | None = None
    direction: RecordAudioDirection | None = None
    terminators: str | None = None
    beep: StrictBool | None = None
    input_sensitivity: Number | None = None
    initial_timeout: Number | None = None
    end_silence_timeout: Number | None = None


class RecordCall(Action):
    """Record the call in the background."""

    action = "record_call"

    control_id: str | None = None
    stereo: StrictBool | None = None
    format: RecordFormat | None = None
    direction: RecordCallAudioDirection | None = None
    terminators: str | None = None
    beep: StrictBool | None = None
    input_sensitivity: Number | None = None
    initial_timeout: Number | None = None
    end_silence_timeout: Number | None = None


class StopRecordCall(Action):
    """Stop a background recording started by `record_call`."""

    action = "stop_record_call"

    control_id: str | None = None


class SendDigits(Action):
    """Send DTMF digits."""

    action = "send_digits"

    digits: str


class SendFax(Action):
    """Send a fax document."""

    action = "send_fax"

    document: str  # URL of a PDF/TIFF
    header_info: str | None = None
    identity: str | None = None


class SendSMS(Action):
    """Send an outbound message."""

    action = "send_sms"

    to_number: str
    from_number: str
    body: str | None = None
    media: list[str] | None = None
    region: str | None = None
    tags: list[str] | None = None


class SIPRefer(Action):
    """Transfer a SIP call with REFER."""

    action = "sip_refer"

    to_uri: str
    result: "BranchResult | None" = None


class Tap(Action):
    """Stream call audio to an RTP or websocket endpoint."""

    action = "tap"

    uri: str
    control_id: str | None = None
    direction: str | None = None
    codec: str | None = None
    rtp_ptime: StrictInt | None = None  # Milliseconds


class StopTap(Action):
    """Stop a tap started by `tap`."""

    action = "stop_tap"

    control_id: str | None = None


# =============================================================================
# AI Agent
# =============================================================================


class AIPrompt(SWMLModel):
    """Prompt text plus sampling parameters for the AI agent."""

    text: str | None = None
    temperature: Number | None = None
    top_p: Number | None = None
    confidence: Number | None = None
    presence_penalty: Number | None = None
    frequency_penalty: Number | None = None
    result: "BranchResult | None" = None


class AIParams(SWMLModel):
    """Behaviour knobs for the AI agent.

    Defaults and ranges below are what the runtime applies; none of them
    are enforced here.
    """

    direction: AIDirection | None = None  # Default: inferred from call
    wait_for_user: StrictBool | None = None  # Default false
    end_of_speech_timeout: StrictInt | None = None  # ms, 250-10000, default 2000
    attention_timeout: StrictInt | None = None  # ms, 10000-600000, default 10000
    outbound_attention_timeout: StrictInt | None = None  # ms, 10000-600000, default 120000
    inactivity_timeout: StrictInt | None = None  # ms, 10000-3600000, default 600000
    background_file: str | None = None
    background_file_loops: StrictInt | None = None  # Default: loop forever
    background_file_volume: Number | None = None  # -50 to 50, default 0
    ai_volume: Number | None = None  # -50 to 50, default 0
    local_tz: str | None = None  # Default "GMT"
    conscience: StrictBool | None = None
    save_conversation: StrictBool | None = None
    conversation_id: str | None = None
    digit_timeout: StrictInt | None = None  # ms, 0-30000, default 3000
    digit_terminators: str | None = None
    energy_level: Number | None = None  # 0-100, default 52
    swaig_allow_swml: StrictBool | None = None  # Default true
    swaig_allow_settings: StrictBool | None = None  # Default true
    languages_enabled: StrictBool | None = None
    verbose_logs: StrictBool | None = None


class AILanguage(SWMLModel):
    name: str
    code: str
    voice: str | None = None


class AIPronounce(SWMLModel):
    """Replace a word before it is spoken."""

    replace: str
    with_: str = Field(alias="with")
    ignore_case: StrictBool | None = None


class WebHookDefaults(SWMLModel):
    web_hook_url: str | None = None
    web_hook_auth_user: str | None = None
    web_hook_auth_password: str | None = None


class FunctionMetaData(SWMLModel):
    name: str
    code: str
    voice: str | None = None


class ExpressionOutput(SWMLModel):
    response: str
    action: list[OpenMap] | None = None


class Expression(SWMLModel):
    """Regex match against a string; on match, `output` is returned."""

    string: str
    pattern: str
    output: ExpressionOutput


class WebhookOutput(SWMLModel):
    """What the AI gets back after a data_map webhook call.

    `action` holds full instructions, so SWML can nest here.
    """

    response: str | None = None
    action: list["Instruction"] | None = None


class WebhookConfig(SWMLModel):
    url: str
    method: RequestMethod
    headers: OpenMap | None = None
    output: WebhookOutput | None = None


class DataMap(SWMLModel):
    """Server-side function body evaluated by the runtime instead of a webhook."""

    expressions: list[Expression] | None = None
    webhooks: WebhookConfig | None = None


class FunctionArgument(SWMLModel):
    """JSON-schema style description of the function's input."""

    type: str | OpenMap
    properties: OpenMap


class FunctionConfig(SWMLModel):
    """A function the AI agent may call."""

    function: str
    purpose: str
    argument: FunctionArgument
    active: StrictBool | None = None
    meta_data: list[FunctionMetaData] | None = None
    meta_data_token: str | None = None
    data_map: list[DataMap] | None = None
    web_hook_url: str | None = None
    web_hook_auth_user: str | None = None
    web_hook_auth_pass: str | None = None


class SWAIGConfig(SWMLModel):
    """SignalWire AI Gateway: functions the AI agent can call."""

    defaults: WebHookDefaults | None = None
    includes: list[OpenMap] | None = None
    functions: list[FunctionConfig] | None = None


class AI(Action):
    """Hand the call to a conversational AI agent."""

    action = "ai"

    prompt: AIPrompt | None = None
    post_prompt: AIPrompt | None = None
    post_prompt_url: str | None = None
    post_prompt_auth_user: str | None = None
    post_prompt_auth_password: str | None = None
    params: AIParams | None = None
    swaig: SWAIGConfig | None = Field(default=None, alias="SWAIG")
    hints: list[str] | None = None
    languages: list[AILanguage] | None = None
    pronounce: list[AIPronounce] | None = None


# =============================================================================
# Unions
# =============================================================================


def _instruction_tag(value: Any) -> str | None:
    """Pick the union member for a value: its action key or the shorthand tag."""
    if isinstance(value, Action):
        return value.action
    if isinstance(value, str):
        return SHORTHAND_TAG
    if isinstance(value, Mapping) and len(value) == 1:
        key = next(iter(value))
        if isinstance(key, str):
            return key
    return None


# Conditional continuation shared by request, connect, prompt, sip_refer
# and ai.prompt.
Branch = Annotated[
    Union[
        Annotated[Cond, Tag("cond")],
        Annotated[Switch, Tag("switch")],
    ],
    Discriminator(
        _instruction_tag,
        custom_error_type="invalid_branch",
        custom_error_message="Expected a cond or switch instruction",
    ),
]

BranchResult = Union[Branch, list[Branch]]

Instruction = Annotated[
    Union[
        Annotated[Shorthand, Tag(SHORTHAND_TAG)],
        # Control flow
        Annotated[Cond, Tag("cond")],
        Annotated[Switch, Tag("switch")],
        Annotated[Execute, Tag("execute")],
        Annotated[Transfer, Tag("transfer")],
        Annotated[Goto, Tag("goto")],
        Annotated[Return, Tag("return")],
        Annotated[Set, Tag("set")],
        Annotated[Unset, Tag("unset")],
        Annotated[Request, Tag("request")],
        # Call actions
        Annotated[Answer, Tag("answer")],
        Annotated[Hangup, Tag("hangup")],
        Annotated[Connect, Tag("connect")],
        Annotated[Denoise, Tag("denoise")],
        Annotated[StopDenoise, Tag("stop_denoise")],
        Annotated[JoinRoom, Tag("join_room")],
        Annotated[Play, Tag("play")],
        Annotated[Prompt, Tag("prompt")],
        Annotated[ReceiveFax, Tag("receive_fax")],
        Annotated[Record, Tag("record")],
        Annotated[RecordCall, Tag("record_call")],
        Annotated[StopRecordCall, Tag("stop_record_call")],
        Annotated[SendDigits, Tag("send_digits")],
        Annotated[SendFax, Tag("send_fax")],
        Annotated[SendSMS, Tag("send_sms")],
        Annotated[SIPRefer, Tag("sip_refer")],
        Annotated[Tap, Tag("tap")],
        Annotated[StopTap, Tag("stop_tap")],
        # AI
        Annotated[AI, Tag("ai")],
    ],
    Discriminator(
        _instruction_tag,
        custom_error_type="invalid_instruction",
        custom_error_message=(
            "Expected a shorthand string or a single-key mapping naming a known action"
        ),
    ),
]

ACTION_MODELS: dict[str, type[Action]] = {
    model.action: model
    for model in (
        Cond,
        Switch,
        Execute,
        Transfer,
        Goto,
        Return,
        Set,
        Unset,
        Request,
        Answer,
        Hangup,
        Connect,
        Denoise,
        StopDenoise,
        JoinRoom,
        Play,
        Prompt,
        ReceiveFax,
        Record,
        RecordCall,
        StopRecordCall,
        SendDigits,
        SendFax,
        SendSMS,
        SIPRefer,
        Tap,
        StopTap,
        AI,
    )
}

# Resolve the forward references to Instruction/BranchResult.
for _model in (
    *ACTION_MODELS.values(),
    AIPrompt,
    WebhookOutput,
    WebhookConfig,
    DataMap,
    FunctionConfig,
    SWAIGConfig,
):
    _model.model_rebuild()

_INSTRUCTION_ADAPTER: TypeAdapter[Any] = TypeAdapter(Instruction)


def validate_instruction(value: Any) -> Any:
    """Validate a wire-form instruction and return its typed form.

    Shorthand strings come back unchanged, mappings come back as models.
    Raises SchemaViolationError naming the first offending field.
    """
    try:
        return _INSTRUCTION_ADAPTER.validate_python(value)
    except ValidationError as e:
        errors = e.errors(include_url=False)
        first = errors[0]
        field = ".".join(str(part) for part in first["loc"]) or "<instruction>"
        raise SchemaViolationError(field, first["msg"], errors) from e

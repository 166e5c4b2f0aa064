
__app_name__ = "filedrop"
__version__ = "0.1.0"
__description__ = "Copy files dropped into a watched tree and announce them on a RabbitMQ queue."


(
    SUCCESS,
    CONFIG_ERROR,
    WATCH_ERROR,
    COPY_ERROR,
    CONNECT_ERROR,
    CHANNEL_ERROR,
    DECLARE_ERROR,
    PUBLISH_ERROR,
    CONSUME_ERROR,
) = range(9)


ERRORS = {
    CONFIG_ERROR: "Config error: Unable to read or parse the configuration file.",
    WATCH_ERROR: "Watch error: Unable to watch the requested directory tree.",
    COPY_ERROR: "Copy error: Unable to copy the file to the destination.",
    CONNECT_ERROR: "Failed to connect to RabbitMQ",
    CHANNEL_ERROR: "Failed to open a channel",
    DECLARE_ERROR: "Failed to declare a queue",
    PUBLISH_ERROR: "Failed to publish a message",
    CONSUME_ERROR: "Failed to register a consumer",
}

from langchain_core.prompts import ChatPromptTemplate


# Prompt for answering from the session's document context + recent conversation
document_qa_prompt = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            (
                "You are a friendly and knowledgeable document expert. "
                "Use the following extracted context from the user's document to help answer their questions. "
                "Remember the conversation history and tailor your responses to be personalized and engaging.\n\n"
                "Document context:\n{context}\n\n"
                "Conversation history:\n{history}\n\n"
                "Now, answer the following question in a clear, conversational, and personalized tone:"
            ),
        ),
        ("human", "{question}"),
    ]
)


# Central dictionary to register prompts
PROMPT_REGISTRY = {
    "document_qa": document_qa_prompt,
}

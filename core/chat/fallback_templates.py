"""Deterministic reply templates used when no completion service answers.

Assistant turns are re-scanned by the entity extractor, so nothing here may
contain a gender keyword, an age phrase, or a "name is X" style phrase.
"""
from typing import Dict

from models.schemas import DialogueSituation

ENGLISH = "en"
CHINESE = "zh"

SITUATION_TEMPLATES: Dict[str, Dict[DialogueSituation, str]] = {
    ENGLISH: {
        DialogueSituation.NEED_NAME: (
            "Hello! I'm here to help you with your child's health. To provide the best advice, "
            "could you please tell me your child's name?"
        ),
        DialogueSituation.NEED_AGE: (
            "Thank you! Could you please tell me {name}'s date of birth or age?"
        ),
        DialogueSituation.NEED_GENDER: (
            "Thanks! Could you please tell me {name}'s gender?"
        ),
        DialogueSituation.READY: (
            "I understand your concern about {name} ({age}). To provide the best advice, "
            "could you tell me more about the specific symptoms or concerns you have?"
        ),
    },
    CHINESE: {
        DialogueSituation.NEED_NAME: (
            "您好！我可以帮您了解孩子的健康状况。为了给出更合适的建议，请先告诉我孩子的姓名。"
        ),
        DialogueSituation.NEED_AGE: (
            "谢谢！请告诉我{name}的出生日期或年龄。"
        ),
        DialogueSituation.NEED_GENDER: (
            "谢谢！请告诉我{name}的性别。"
        ),
        DialogueSituation.READY: (
            "我理解您对{name}的担心。为了给出更合适的建议，能否详细描述一下具体的症状或情况？"
        ),
    },
}

FEVER_ADVICE = {
    ENGLISH: """I understand you're concerned about {name}'s fever. Here are some general suggestions:

🩺 What You Can Do:
• Monitor the temperature regularly
• Keep your child hydrated with water or electrolyte solutions
• Ensure they get plenty of rest
• Use age-appropriate fever reducers if needed (consult a doctor for dosage)

⚠️ When to Seek Medical Attention:
• Fever persists for more than three days
• Temperature is very high (above 104°F/40°C)
• Your child shows signs of dehydration
• Your child appears very unwell or lethargic

Would you like me to connect you with one of our pediatricians for a consultation?""",
    CHINESE: """我理解您对{name}发烧的担心。以下是一些一般性建议：

🩺 您可以这样做：
• 定时测量体温
• 让孩子多喝水或补充电解质
• 保证充足休息
• 必要时使用适合年龄的退烧药（剂量请咨询医生）

⚠️ 出现以下情况请及时就医：
• 持续发烧超过三天
• 体温很高（超过40°C）
• 出现脱水迹象
• 精神很差或嗜睡

需要我为您联系我们的儿科医生进行咨询吗？""",
}

COUGH_ADVICE = {
    ENGLISH: """I understand {name} has a cough. Here are some general suggestions:

🩺 What You Can Do:
• Keep your child hydrated
• Use a humidifier in their room
• Ensure they get plenty of rest
• Avoid irritants like smoke

⚠️ When to Seek Medical Attention:
• Cough persists for more than a week
• Your child has difficulty breathing
• Cough is accompanied by high fever
• Your child appears distressed

Would you like me to connect you with one of our pediatricians?""",
    CHINESE: """我了解到{name}在咳嗽。以下是一些一般性建议：

🩺 您可以这样做：
• 让孩子多喝水
• 在房间里使用加湿器
• 保证充足休息
• 避免烟雾等刺激物

⚠️ 出现以下情况请及时就医：
• 咳嗽持续超过一周
• 呼吸困难
• 咳嗽伴有高烧
• 孩子显得非常难受

需要我为您联系我们的儿科医生吗？""",
}

DOCTOR_REQUEST = {
    ENGLISH: "Of course. I can help you find a pediatrician for {name}.",
    CHINESE: "好的，我可以帮您为{name}找一位儿科医生。",
}

DOCTOR_SNIPPET_HEADER = {
    ENGLISH: "Here are doctors you can consult:",
    CHINESE: "可以为您推荐以下医生：",
}

NO_DOCTORS_AVAILABLE = {
    ENGLISH: "No doctors are available for recommendation right now. Please check back later.",
    CHINESE: "目前暂时没有可推荐的医生，请稍后再试。",
}

CHILD_PLACEHOLDER = {
    ENGLISH: "your child",
    CHINESE: "孩子",
}

GENERIC_APOLOGY = {
    ENGLISH: "I'm sorry, I couldn't put together a reply just now. Please try again in a moment.",
    CHINESE: "抱歉，暂时无法回复，请稍后再试。",
}

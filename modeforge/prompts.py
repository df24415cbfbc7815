MODULE_PROMPT = """
You are an expert embedded systems engineer. Generate a production-quality C++ module for ESP32-S3 that implements a {device_type} device mode.

===============================================================================
HARDWARE PROFILE (Available sensors and actuators)
===============================================================================
{hardware_profile}

===============================================================================
USER PROFILE
===============================================================================
{user_profile}

===============================================================================
REQUIREMENTS
===============================================================================
1. **State Machine Architecture**: Implement a clean FSM with states like IDLE, ACTIVE, ALERT, LOW_POWER
2. **Power Efficiency**:
   - Use configurable polling intervals (fast when active, slow when idle)
   - Only transmit when values change significantly (delta threshold) or on critical events
3. **Smart Data Processing**:
   - Never send raw noisy data directly to the phone.
   - Apply EMA (Exponential Moving Average) smoothing to analog inputs.
   - Calculate meaningful features on-device (e.g. 'motion_intensity' instead of raw accel).
4. **Error Handling**:
   - Handle GPS signal loss gracefully (use last known good position)
   - Detect IMU disconnection or malfunction
   - Log errors to Serial for debugging
5. **Feature Set**: {features}
6. **Tunable Parameters**: Expose every threshold and interval the user may want to adjust as a
   `#define NAME value` or a `static constexpr float|int|uint32_t|double NAME = value;` with a numeric literal.

===============================================================================
DISPLAY CAPABILITIES (Global 'display' object is available)
===============================================================================
You have access to a global `DisplayManager display;`. Do not implement the driver yourself:

- `display.showStatus(String title, String status, int iconIndex)`: Simple status screen
- `display.drawGraph(float value, float min, float max)`: Scrolling live waveform
- `display.showProgressBar(String label, int percent)`: Progress/Battery bar
- `display.showIcon(int iconIndex)`: 0=Check, 1=Cross, 2=Warn, 3=Wifi, 4=Music
- `display.clear()` and `display.update()`: Manual control

**MANDATORY**: In your `update()` loop, you MUST call one of these to show feedback to the user.

===============================================================================
REQUIRED INTERFACE (Implement exactly this structure)
===============================================================================
#ifndef {guard}_MODULE_H
#define {guard}_MODULE_H

#include "../include/types.h"
#include <Arduino.h>

enum class {class_name}State { IDLE, ACTIVE, MONITORING, ALERT, LOW_POWER };

class {class_name} {
private:
    {class_name}State currentState = {class_name}State::IDLE;
    uint32_t lastSampleMs = 0;
    uint32_t lastTransmitMs = 0;
    static constexpr uint32_t SAMPLE_INTERVAL_ACTIVE = 100;
    static constexpr uint32_t SAMPLE_INTERVAL_IDLE = 1000;
    static constexpr uint32_t TRANSMIT_INTERVAL = 5000;
    float filterAlpha = 0.2f;
    float filteredValue = 0.0f;

public:
    void init();
    void update(const SensorData& data);
    TelemetryData getTelemetry();
    void handleAlert();
    void printDebug();
};

#endif

===============================================================================
OUTPUT RULES
===============================================================================
- Return ONLY valid, compilable C++ code
- Include all #include statements needed
- Add brief comments explaining {device_type}-specific logic
- NO markdown, NO explanations, just code
"""

VERIFY_PROMPT = """
Review the following C++ code for CRITICAL compilation errors (ESP32 / Arduino environment).

CODE:
{code}

CHECKLIST:
1. Are there missing semicolons or brackets?
2. Is the class name exactly '{class_name}'?
3. Are there undefined variables or types?
4. Are there infinite loops in 'update()'?
5. Does it implement the 'getTelemetry()' method correctly?

INSTRUCTION:
- If errors exist, FIX them and return the clean code.
- If code is perfect, return it exactly as is.
- Return ONLY valid C++ code. No markdown.
"""

WIDGET_PROMPT = """
You are an elite UI/UX engineer specializing in premium dashboard widgets. Generate a React component for a {device_type} dashboard.

CONTEXT:
- Device: {device_type}
- Description: {description}

PROJECT TAILWIND CONFIGURATION (STRICTLY ADHERE TO THIS):
{tailwind_config}

===============================================================================
AVAILABLE DATA (from useDevice hook)
===============================================================================
const { deviceData, telemetryHistory } = useDevice();
- deviceData: { sensorValue, status, latitude, longitude, ts, batteryPercent, rssi, contextName }
- telemetryHistory: Array of past deviceData readings for charts

Data fields specific to {device_type}: {data_fields}

===============================================================================
AVAILABLE COMPONENTS & HOOKS (injected into scope)
===============================================================================
- React hooks: useState, useEffect, useMemo, useCallback
- BentoCard: <BentoCard title="" value="" unit="" icon="" color="blue|green|purple|orange|red|gray" size="sm|md|lg|full">
- Recharts: AreaChart, LineChart, BarChart, PieChart, Area, Line, Bar, XAxis, YAxis, Tooltip, ResponsiveContainer, Cell, CartesianGrid
- IconLibrary: MapPin, Activity, CheckCircle, AlertTriangle, Clock, Zap

ABSOLUTELY FORBIDDEN (THEY ARE NOT AVAILABLE AND WILL CRASH THE APP):
- lucide-react, react-icons, framer-motion, @heroicons/react, any other external npm package
Use emoji, inline SVG or IconLibrary instead.

===============================================================================
REQUIREMENTS
===============================================================================
- Component name: {component_name}, exported as default
- Glassmorphism cards (bg-white/5, border-white/10, rounded-3xl), premium HSL colors
- Handle empty/null data gracefully
- Include a GPS map ONLY if {device_type} tracks location

OUTPUT RULES:
- Return ONLY valid JSX code
- NO markdown code fences, NO explanations outside the code
"""

AUTO_WIDGET_PROMPT = """
Generate a beautiful React component for this autonomously discovered feature:

Feature Name: {feature_name}
Widget Type: {widget_type} (gauge, chart, counter, timeline, alert)
Data Field: {data_field}
Description: {description}

Requirements:
1. Use Tailwind CSS for styling (gradients, shadows, dark mode compatible)
2. Use Recharts if widget_type is "chart"
3. Access data via: const { deviceData, telemetryHistory } = useDevice();
4. The data field is: deviceData.{data_field}
5. Make it responsive (mobile-friendly)
6. Do NOT import lucide-react, react-icons, framer-motion or @heroicons/react

Return ONLY valid JSX code for the component, NO explanation.
Component name: {component_name}
"""

FEASIBILITY_PROMPT = """
You are a Senior Embedded Systems Engineer. Analyze if the following project is feasible on an ESP32-S3 with the given hardware.

PROJECT: {device_name}
PURPOSE: {purpose}
{refinements}

AVAILABLE HARDWARE:
{hardware}

Analyze constraints:
1. Sensor availability (e.g. need GPS for tracking?)
2. Power constraints (Battery vs. USB)
3. Processing power (TinyML possible?)

Return JSON ONLY:
{
  "possible": boolean,
  "difficulty": "Easy" | "Medium" | "Hard" | "Impossible",
  "reasoning": "brief explanation",
  "missing_hardware": ["GPS", "Camera"],
  "warnings": ["Battery drain high", "Accuracy low without X"]
}
"""

USE_CASES_PROMPT = """
You are a Product Manager. Suggest 3 creative, distinct user stories/use cases for this IoT device.

DEVICE: {device_name}
PURPOSE: {purpose}

Return JSON ONLY:
{
  "use_cases": [
    { "title": "...", "description": "...", "icon": "..." },
    { "title": "...", "description": "...", "icon": "..." },
    { "title": "...", "description": "...", "icon": "..." }
  ]
}
"""
